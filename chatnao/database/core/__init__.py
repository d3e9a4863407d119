"""
Service layer called by the API router.

- funcs: signup, login, doctor roster, chat listing and get-or-create
- message_pipeline: send (rewrite) pipeline, message views, search, summaries
- seed: demo data loader behind the `chatnao-seed` script
"""
