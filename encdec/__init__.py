"""
ENCDEC - AES-128-CBC file encoder/decoder with round-trip validation

Every encode is decrypted again, and every decode re-encrypted, before the
result is handed back or written to disk. A result that does not reproduce its
input byte for byte is never committed.
"""

from .main import encdec, cli, main
from .errors import (
    CipherError,
    CipherErrorKind,
    ConfigurationError,
    EncdecError,
    FailureKind,
    ValidationError,
)
from .results import BatchReport, FileOutcome, TransformResult, TransformState
from .version import __version__

IV = encdec.IV

# ============================================================================
# BYTE FUNCTIONS (bytes -> bytes)
# ============================================================================

def encode_bytes(data: bytes, key: str | bytes, trim_nuls: bool | None = None) -> bytes:
    """
    Encrypt a buffer and confirm it decrypts back to the same bytes.

    Args:
        data: Plaintext bytes
        key: Passphrase, at most 16 bytes once UTF-8 encoded
        trim_nuls: Trim NUL bytes during the validating decrypt
            (defaults to ENCDEC_TRIM_NULS, on unless set to 0)

    Returns:
        Ciphertext, a multiple of 16 bytes long

    Raises:
        ConfigurationError: key longer than 16 bytes
        ValidationError: the ciphertext does not decrypt to `data`
            (e.g. `data` ends with NUL bytes while trimming is on)
    """
    return encdec.raise_for_result(encdec.transform("encode", key, data, trim_nuls=trim_nuls))


def decode_bytes(data: bytes, key: str | bytes, trim_nuls: bool | None = None) -> bytes:
    """
    Decrypt a buffer and confirm it re-encrypts to the same ciphertext.

    Raises:
        ConfigurationError: key longer than 16 bytes
        CipherError: `data` is empty or not a multiple of 16 bytes
        ValidationError: wrong key, or the plaintext does not re-encrypt to `data`
    """
    return encdec.raise_for_result(encdec.transform("decode", key, data, trim_nuls=trim_nuls))


# ============================================================================
# FILE FUNCTIONS
# ============================================================================

def encode_file(
    file: str,
    key: str | bytes,
    output: str | None = None,
    *,
    normalize_line_endings: bool = True,
    trim_nuls: bool | None = None,
) -> FileOutcome:
    """
    Encode one file; the output defaults to the same name with a .bin suffix.
    Nothing is written unless validation passes.
    """
    destination = output or encdec.default_output("encode", file)
    return encdec.process_file(
        "encode",
        key,
        file,
        destination,
        normalize_line_endings=normalize_line_endings,
        trim_nuls=trim_nuls,
    )


def decode_file(
    file: str,
    key: str | bytes,
    output: str | None = None,
    *,
    normalize_line_endings: bool = False,
    trim_nuls: bool | None = None,
) -> FileOutcome:
    """Decode one file; the output defaults to the same name with a .txt suffix."""
    destination = output or encdec.default_output("decode", file)
    return encdec.process_file(
        "decode",
        key,
        file,
        destination,
        normalize_line_endings=normalize_line_endings,
        trim_nuls=trim_nuls,
    )


def handle_path(
    path: str,
    key: str | bytes,
    mode: str,
    output: str | None = None,
    *,
    jobs: int | None = None,
    trim_nuls: bool | None = None,
) -> BatchReport:
    """
    Encode or decode a single file or every matching file in a directory.

    Directories pick up *.txt files for encode and *.bin files for decode;
    `output` is then an output directory. Each file commits or aborts on its
    own and the report's `ok` is true only when all of them committed.
    """
    source = encdec._normalize_path(path)
    if source.is_dir():
        pairs = encdec.discover(mode, source, output)
    else:
        pairs = [(source, output or encdec.default_output(mode, source))]
    return encdec.process_batch(mode, key, pairs, jobs=jobs, trim_nuls=trim_nuls)


__all__ = [
    "BatchReport",
    "CipherError",
    "CipherErrorKind",
    "ConfigurationError",
    "EncdecError",
    "FailureKind",
    "FileOutcome",
    "IV",
    "TransformResult",
    "TransformState",
    "ValidationError",
    "__version__",
    "cli",
    "decode_bytes",
    "decode_file",
    "encdec",
    "encode_bytes",
    "encode_file",
    "handle_path",
    "main",
]
