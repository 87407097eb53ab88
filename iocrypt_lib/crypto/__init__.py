"""Cipher and password helpers."""

from .aes import Aes, CryptoLib
from .facade import Crypto, ModuleCrypto
from .password import Password, PasswordPolicy

__all__ = ["Aes", "CryptoLib", "Crypto", "ModuleCrypto", "Password", "PasswordPolicy"]
