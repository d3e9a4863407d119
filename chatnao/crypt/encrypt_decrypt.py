import bcrypt


class EncryptionDec:
    """
    Utility class for password hashing and verification.

    Methods
    -------
    hash_password(text: str) -> str
        Hashes a plaintext password using bcrypt with a generated salt.
    check_passwords(plain_text: str, passwd: str) -> bool
        Verifies a plaintext password against a hashed password.
    dummy_hash() -> str
        A hash of a throwaway secret at the same cost factor.
    """

    def __init__(self, rounds: int = 10):
        """
        Parameters
        ----------
        rounds : int, optional
            bcrypt cost factor. Default is 10.
        """
        self.rounds = rounds
        self._dummy_hash = None

    def hash_password(self, text: str) -> str:
        """
        Hash a plaintext password using bcrypt.

        Parameters
        ----------
        text : str
            The plaintext password.

        Returns
        -------
        str
            The bcrypt-hashed password (UTF-8 decoded).
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(text.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def check_passwords(self, plain_text: str, passwd: str) -> bool:
        """
        Verify if a plaintext password matches a hashed password.

        Parameters
        ----------
        plain_text : str
            The plaintext password to check.
        passwd : str
            The previously hashed password to verify against.

        Returns
        -------
        bool
            True if the password matches, False otherwise (including a malformed hash).
        """
        try:
            return bcrypt.checkpw(plain_text.encode("utf-8"), passwd.encode("utf-8"))
        except ValueError:
            return False

    def dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hash_password("chatnao-unknown-account")
        return self._dummy_hash
