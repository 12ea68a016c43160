"""
Brunocrypt encrypts and decrypts the .env files in a directory tree with GPG.

Every file named '.env' below DIRECTORY is encrypted to a '.env.gpg' file next
to it, and every '.env.gpg' file is decrypted back to '.env'. The gpg command
is used for all encryption and decryption. When encrypting at the root of a
git repository, '*.gpg' is added to its .gitignore file.

Exactly one of --encrypt, --decrypt or --clean must be given. Files are
processed one at a time and a file that fails is reported without stopping
the rest; the exit status only reflects configuration errors.
"""

__version__ = '1.0.0'
