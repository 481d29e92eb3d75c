"""Application constants."""

# Password policy
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
PASSWORD_MIN_CHARACTER_CLASSES = 2
PASSWORD_SYMBOLS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

# bcrypt identifiers, used to tell hashed passwords from legacy plaintext
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# bcrypt only reads this many bytes of a password
BCRYPT_MAX_BYTES = 72

# Profile: most recent lessons shown per student
PROFILE_RECENT_LESSONS = 5
