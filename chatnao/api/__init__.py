"""
API Package — FastAPI Router • Models • LLM Rewriter • S3 Audio
===============================================================

Mission
-------
This package defines the backend's HTTP interface and its support stack:
FastAPI routing, Pydantic contracts, the role-aware LLM rewrite adapter and the
S3 helpers for recorded audio.

Contents
--------
- fast_api
    FastAPI router (prefix `/api`) with endpoints for:
      • Auth: login, signup
      • Roster: list doctors
      • Chats: list for a user, get-or-create, summarize
      • Messages: send, list (per-viewer primary/secondary text), search
      • Uploads: presigned audio upload URL

- models
    Pydantic data contracts with camelCase JSON aliases:
      • LoginRequest, DoctorSignup / PatientSignup (discriminated on `role`)
      • DoctorProfile / PatientProfile, ChatSummary, DoctorSummary
      • SendMessageRequest / SendMessageResult, MessageView, SearchHit, UploadUrl
      • Role, Gender, Specialty and ChatStatus enums

- llm_rewriter
    `Rewriter` capability and its LangChain `ChatOpenAI` implementation:
      • rewrite_for_audience(sender_role, text) — doctor→patient plain language,
        patient→doctor clinical phrasing
      • summarize(transcript) — structured conversation summary
      • Failures come back as a `RewriteResult` status (timeout, quota_exceeded,
        transport_error) instead of an exception

- aws_bucket_funcs
    S3 integration helpers (module: aws_bucket_funcs/funcs.py):
      • get_client(settings) — initializes a Signature V4 S3 client
      • upload_url(key, s3_client, bucket) — presigned PUT URL
      • download(key, s3_client, bucket) — presigned GET URL
      • AudioStorage — allocates `audio/<uuid>` keys and signs URLs for them

Operational Notes
-----------------
- Security: presigned URLs and API keys are never logged.
"""
