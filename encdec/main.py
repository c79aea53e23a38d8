# ENCDEC FILE CIPHER ->

import os as _os_module

from .errors import (
    CipherError,
    CipherErrorKind,
    ConfigurationError,
    FailureKind,
    ValidationError,
)
from .results import BatchReport, FileOutcome, TransformResult, TransformState


class encdec:
    import concurrent.futures
    import os
    import pathlib
    import sys
    import typing
    from cryptography.hazmat.primitives import padding
    from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

    @staticmethod
    def _env_int(name: str) -> "encdec.typing.Optional[int]":
        value = _os_module.getenv(name)
        if not value:
            return None
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return None
        if parsed <= 0:
            return None
        return parsed

    @staticmethod
    def _env_flag(name: str, default: bool) -> bool:
        value = _os_module.getenv(name)
        if value is None or not value.strip():
            return default
        return value.strip().lower() not in {"0", "false", "off", "no"}

    ENGINE_VERSION = "1.0.0"
    BLOCK_SIZE = 16
    KEY_SIZE = 16
    # Fixed IV shared by every call. Identical plaintext and key always give
    # identical ciphertext; existing .bin files can only be read back with it.
    IV = bytes(range(16))
    MODES = ("encode", "decode")
    SUFFIXES = {
        "encode": (".txt", ".bin"),
        "decode": (".bin", ".txt"),
    }
    MAX_INPUT_BYTES = 2 * 1024 * 1024 * 1024
    _MAX_INPUT_BYTES_ENV = _env_int("ENCDEC_MAX_INPUT_BYTES")
    if _MAX_INPUT_BYTES_ENV is not None:
        MAX_INPUT_BYTES = _MAX_INPUT_BYTES_ENV
    TRIM_NULS = _env_flag("ENCDEC_TRIM_NULS", True)
    _CPU_COUNT_OVERRIDE = _env_int("ENCDEC_MAX_THREADS")
    if _CPU_COUNT_OVERRIDE is not None:
        _CPU_COUNT = _CPU_COUNT_OVERRIDE
    else:
        _CPU_COUNT = max(1, os.cpu_count() or 1)
    _SINGLE_THREAD_OVERRIDE = _os_module.getenv("ENCDEC_FORCE_SINGLE_THREAD") == "1"

    ENCODE_MISMATCH = "Decoded string doesn't match source after encoding! Skipping file write."
    DECODE_MISMATCH = "Encoded string doesn't match source after decoding! Skipping file write."

    @staticmethod
    def _human_readable_size(num_bytes: int) -> str:
        units = ["B", "KiB", "MiB", "GiB", "TiB"]
        size = float(num_bytes)
        for unit in units:
            if size < 1024.0 or unit == units[-1]:
                return f"{size:.2f} {unit}"
            size /= 1024.0
        return f"{size:.2f} TiB"

    @staticmethod
    def _normalize_path(path_like: "encdec.typing.Union[str, encdec.pathlib.Path]") -> "encdec.pathlib.Path":
        if isinstance(path_like, encdec.pathlib.Path):
            path = path_like
        else:
            path = encdec.pathlib.Path(str(path_like))
        path = path.expanduser()
        try:
            return path.resolve(strict=False)
        except OSError:
            return path

    @staticmethod
    def _ensure_existing_file(path: "encdec.pathlib.Path") -> None:
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Input file not found: {path}")

    @staticmethod
    def _ensure_size_limit(path: "encdec.pathlib.Path", max_bytes: "encdec.typing.Optional[int]" = None) -> None:
        limit = max_bytes or encdec.MAX_INPUT_BYTES
        size = path.stat().st_size
        if size > limit:
            human_size = encdec._human_readable_size(size)
            human_limit = encdec._human_readable_size(limit)
            raise ValueError(f"{path.name} is {human_size}, exceeding the {human_limit} limit")

    @staticmethod
    def _same_file(first: "encdec.pathlib.Path", second: "encdec.pathlib.Path") -> bool:
        if first == second:
            return True
        try:
            return first.exists() and second.exists() and encdec.os.path.samefile(first, second)
        except OSError:
            return False

    @staticmethod
    def normalize_mode(mode: str) -> str:
        normalized = (mode or "").strip().lower()
        if normalized not in encdec.MODES:
            raise ConfigurationError(f"Unsupported mode '{mode}', expected one of: encode, decode")
        return normalized

    # ---------- Key derivation ---------------------------------------------

    @staticmethod
    def check_passphrase(passphrase: "encdec.typing.Union[str, bytes]") -> bytes:
        if isinstance(passphrase, str):
            raw = passphrase.encode("utf-8")
        elif isinstance(passphrase, (bytes, bytearray, memoryview)):
            raw = bytes(passphrase)
        else:
            raise ConfigurationError(f"Unsupported key type: {type(passphrase).__name__}")
        if len(raw) > encdec.KEY_SIZE:
            raise ConfigurationError(
                "Key string too long, up to 16 characters are allowed for 128bit encoding"
            )
        return raw

    @staticmethod
    def derive_key(passphrase: "encdec.typing.Union[str, bytes]") -> bytes:
        """Right-pad the passphrase with zero bytes to a 16-byte AES-128 key.

        There is no hashing or stretching; the key space is exactly the set of
        passphrases up to 16 bytes, kept for compatibility with existing files.
        """
        raw = encdec.check_passphrase(passphrase)
        return raw.ljust(encdec.KEY_SIZE, b"\x00")

    # ---------- Block cipher -----------------------------------------------

    @staticmethod
    def _check_key_iv(key: bytes, iv: bytes) -> None:
        if len(key) != encdec.KEY_SIZE:
            raise CipherError(
                CipherErrorKind.KEY_SIZE,
                f"Key must be {encdec.KEY_SIZE} bytes, got {len(key)}",
            )
        if len(iv) != encdec.BLOCK_SIZE:
            raise CipherError(
                CipherErrorKind.IV_SIZE,
                f"IV must be {encdec.BLOCK_SIZE} bytes, got {len(iv)}",
            )

    @staticmethod
    def encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
        encdec._check_key_iv(key, iv)
        padder = encdec.padding.PKCS7(encdec.BLOCK_SIZE * 8).padder()
        padded = padder.update(bytes(plaintext)) + padder.finalize()
        encryptor = encdec.Cipher(encdec.algorithms.AES(bytes(key)), encdec.modes.CBC(bytes(iv))).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    @staticmethod
    def _strip_padding(padded: bytes) -> bytes:
        # Only the last byte is consulted. An out-of-range value means the
        # block did not decrypt to padded data; it is left as-is so the
        # round-trip check rejects it.
        pad_len = padded[-1]
        if 1 <= pad_len <= encdec.BLOCK_SIZE:
            return padded[:-pad_len]
        return padded

    @staticmethod
    def decrypt(
        ciphertext: bytes,
        key: bytes,
        iv: bytes,
        trim_nuls: "encdec.typing.Optional[bool]" = None,
    ) -> bytes:
        encdec._check_key_iv(key, iv)
        data = bytes(ciphertext)
        if not data or len(data) % encdec.BLOCK_SIZE:
            raise CipherError(
                CipherErrorKind.BUFFER_SIZE,
                f"Ciphertext length {len(data)} is not a positive multiple of {encdec.BLOCK_SIZE}",
            )
        decryptor = encdec.Cipher(encdec.algorithms.AES(bytes(key)), encdec.modes.CBC(bytes(iv))).decryptor()
        plain = encdec._strip_padding(decryptor.update(data) + decryptor.finalize())
        if trim_nuls is None:
            trim_nuls = encdec.TRIM_NULS
        if trim_nuls:
            plain = plain.strip(b"\x00")
        return plain

    # ---------- Round-trip validation --------------------------------------

    @staticmethod
    def validate_encode(
        original: bytes,
        ciphertext: bytes,
        key: bytes,
        trim_nuls: "encdec.typing.Optional[bool]" = None,
    ) -> bool:
        try:
            recovered = encdec.decrypt(ciphertext, key, encdec.IV, trim_nuls=trim_nuls)
        except CipherError:
            return False
        return recovered == bytes(original)

    @staticmethod
    def validate_decode(original: bytes, plaintext: bytes, key: bytes) -> bool:
        try:
            reencoded = encdec.encrypt(plaintext, key, encdec.IV)
        except CipherError:
            return False
        return reencoded == bytes(original)

    # ---------- Transform director -----------------------------------------

    @staticmethod
    def transform(
        mode: str,
        passphrase: "encdec.typing.Union[str, bytes]",
        data: bytes,
        trim_nuls: "encdec.typing.Optional[bool]" = None,
        on_state: "encdec.typing.Optional[encdec.typing.Callable[[TransformState], None]]" = None,
    ) -> TransformResult:
        """Run one encode/decode and gate it on its own inverse.

        Raises ConfigurationError for a bad mode or key; every other failure
        comes back as an aborted TransformResult.
        """
        mode = encdec.normalize_mode(mode)
        key = encdec.derive_key(passphrase)
        source = bytes(data)

        def _enter(state: TransformState) -> None:
            if on_state is not None:
                on_state(state)

        _enter(TransformState.TRANSFORMING)
        try:
            if mode == "encode":
                output = encdec.encrypt(source, key, encdec.IV)
            else:
                output = encdec.decrypt(source, key, encdec.IV, trim_nuls=trim_nuls)
        except CipherError as exc:
            _enter(TransformState.ABORTED)
            return TransformResult.aborted(FailureKind.CIPHER, str(exc), cipher_kind=exc.kind)

        _enter(TransformState.VALIDATING)
        if mode == "encode":
            valid = encdec.validate_encode(source, output, key, trim_nuls=trim_nuls)
            mismatch = encdec.ENCODE_MISMATCH
        else:
            valid = encdec.validate_decode(source, output, key)
            mismatch = encdec.DECODE_MISMATCH
        if not valid:
            _enter(TransformState.ABORTED)
            return TransformResult.aborted(FailureKind.ROUND_TRIP_MISMATCH, mismatch)

        _enter(TransformState.COMMITTING)
        return TransformResult.committed(output)

    @staticmethod
    def raise_for_result(result: TransformResult) -> bytes:
        if result.ok:
            return result.output
        if result.failure is FailureKind.CIPHER:
            raise CipherError(result.cipher_kind, result.reason)
        raise ValidationError(result.reason)

    # ---------- File access ------------------------------------------------

    @staticmethod
    def normalize_line_endings(data: bytes) -> bytes:
        # Line-by-line reading joined back with "\n": CRLF collapses and the
        # final newline does not survive.
        text = data.replace(b"\r\n", b"\n")
        if text.endswith(b"\n"):
            text = text[:-1]
        return text

    @staticmethod
    def read_input(path: "encdec.pathlib.Path", normalize_line_endings: bool = False) -> bytes:
        path = encdec._normalize_path(path)
        encdec._ensure_existing_file(path)
        encdec._ensure_size_limit(path)
        data = path.read_bytes()
        if normalize_line_endings:
            data = encdec.normalize_line_endings(data)
        return data

    @staticmethod
    def write_output(path: "encdec.pathlib.Path", data: bytes) -> None:
        path = encdec._normalize_path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f"{path.stem}._tmp{path.suffix}")
        try:
            with open(temp_path, "wb") as handle:
                handle.write(data)
            encdec.os.replace(temp_path, path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    # ---------- Batch driver -----------------------------------------------

    @staticmethod
    def default_output(mode: str, source: "encdec.typing.Union[str, encdec.pathlib.Path]") -> "encdec.pathlib.Path":
        _, dst_suffix = encdec.SUFFIXES[encdec.normalize_mode(mode)]
        return encdec._normalize_path(source).with_suffix(dst_suffix)

    @staticmethod
    def discover(
        mode: str,
        input_dir: "encdec.typing.Union[str, encdec.pathlib.Path]",
        output_dir: "encdec.typing.Optional[encdec.typing.Union[str, encdec.pathlib.Path]]" = None,
    ) -> "list[tuple[encdec.pathlib.Path, encdec.pathlib.Path]]":
        src_suffix, dst_suffix = encdec.SUFFIXES[encdec.normalize_mode(mode)]
        base = encdec._normalize_path(input_dir)
        if not base.is_dir():
            raise ConfigurationError(f"Input directory not found: {base}")
        out_base = encdec._normalize_path(output_dir) if output_dir else base
        pairs = []
        for entry in sorted(base.iterdir()):
            if entry.is_file() and entry.suffix.lower() == src_suffix:
                pairs.append((entry, out_base / f"{entry.stem}{dst_suffix}"))
        return pairs

    @staticmethod
    def process_file(
        mode: str,
        passphrase: "encdec.typing.Union[str, bytes]",
        source: "encdec.typing.Union[str, encdec.pathlib.Path]",
        destination: "encdec.typing.Union[str, encdec.pathlib.Path]",
        *,
        normalize_line_endings: "encdec.typing.Optional[bool]" = None,
        trim_nuls: "encdec.typing.Optional[bool]" = None,
        on_state: "encdec.typing.Optional[encdec.typing.Callable[[TransformState], None]]" = None,
    ) -> FileOutcome:
        mode = encdec.normalize_mode(mode)
        encdec.check_passphrase(passphrase)
        src = encdec._normalize_path(source)
        dst = encdec._normalize_path(destination)
        if normalize_line_endings is None:
            normalize_line_endings = mode == "encode"
        if encdec._same_file(src, dst):
            return FileOutcome.io_failure(src, dst, f"Output would overwrite its own input: {dst}")
        try:
            data = encdec.read_input(src, normalize_line_endings)
        except (OSError, ValueError) as exc:
            return FileOutcome.io_failure(src, dst, f"Cannot open input for reading: {exc}")

        result = encdec.transform(mode, passphrase, data, trim_nuls=trim_nuls, on_state=on_state)
        if not result.ok:
            return FileOutcome.from_result(src, dst, result)
        try:
            encdec.write_output(dst, result.output)
        except OSError as exc:
            return FileOutcome.io_failure(src, dst, f"Cannot open output for writing: {exc}")
        return FileOutcome.from_result(src, dst, result)

    @staticmethod
    def _resolve_workers(count: int, jobs: "encdec.typing.Optional[int]" = None) -> int:
        if jobs is not None:
            limit = max(1, int(jobs))
        elif encdec._SINGLE_THREAD_OVERRIDE:
            limit = 1
        else:
            limit = encdec._CPU_COUNT
        return max(1, min(count, limit))

    @staticmethod
    def process_batch(
        mode: str,
        passphrase: "encdec.typing.Union[str, bytes]",
        pairs: "encdec.typing.Iterable[tuple]",
        *,
        normalize_line_endings: "encdec.typing.Optional[bool]" = None,
        trim_nuls: "encdec.typing.Optional[bool]" = None,
        jobs: "encdec.typing.Optional[int]" = None,
        on_outcome: "encdec.typing.Optional[encdec.typing.Callable[[FileOutcome], None]]" = None,
    ) -> BatchReport:
        """Process every (source, destination) pair independently.

        Outcomes come back in input order whether or not the work fans out
        across threads. One aborted file never stops the others.
        """
        mode = encdec.normalize_mode(mode)
        encdec.check_passphrase(passphrase)
        pairs = [(encdec._normalize_path(src), encdec._normalize_path(dst)) for src, dst in pairs]

        # Destinations compare case-insensitively: a.txt and a.TXT both map to
        # a.bin. The first pair claims it and the others abort.
        claimed: "dict[str, int]" = {}
        collisions: "dict[int, str]" = {}
        for idx, (src, dst) in enumerate(pairs):
            owner = claimed.setdefault(str(dst).casefold(), idx)
            if owner != idx:
                collisions[idx] = f"Output {dst} is already claimed by {pairs[owner][0]}"

        def _run(item) -> FileOutcome:
            idx, (src, dst) = item
            if idx in collisions:
                return FileOutcome.io_failure(src, dst, collisions[idx])
            return encdec.process_file(
                mode,
                passphrase,
                src,
                dst,
                normalize_line_endings=normalize_line_endings,
                trim_nuls=trim_nuls,
            )

        outcomes: "list[FileOutcome]" = []
        workers = encdec._resolve_workers(len(pairs), jobs)
        if workers > 1:
            with encdec.concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                for outcome in executor.map(_run, enumerate(pairs)):
                    outcomes.append(outcome)
                    if on_outcome is not None:
                        on_outcome(outcome)
        else:
            for item in enumerate(pairs):
                outcome = _run(item)
                outcomes.append(outcome)
                if on_outcome is not None:
                    on_outcome(outcome)
        return BatchReport(tuple(outcomes))


def cli(argv=None) -> int:
    import argparse

    def _cli_plain_mode() -> bool:
        if _os_module.getenv("ENCDEC_CLI_PLAIN") or _os_module.getenv("NO_COLOR"):
            return True
        if not getattr(encdec.sys.stdout, "isatty", lambda: False)():
            return True
        style = (_os_module.getenv("ENCDEC_CLI_STYLE") or "").strip().lower()
        return style in {"plain", "0", "false", "off"}

    class _CliTheme:
        def __init__(self, plain: bool):
            self.plain = plain
            self.reset = "" if plain else "\033[0m"
            self.bold = "" if plain else "\033[1m"
            self.red = "" if plain else "\033[31m"
            self.green = "" if plain else "\033[32m"
            self.cyan = "" if plain else "\033[36m"

        def _wrap(self, msg: str, color: str, emoji: str | None = None) -> str:
            if self.plain:
                return msg
            prefix = f"{emoji} " if emoji else ""
            return f"{self.bold}{color}{prefix}{msg}{self.reset}"

        def ok(self, msg: str) -> str:
            return self._wrap(msg, self.green, "✅")

        def err(self, msg: str) -> str:
            return self._wrap(msg, self.red, "❌")

        def info(self, msg: str) -> str:
            return self._wrap(msg, self.cyan)

    theme = _CliTheme(_cli_plain_mode())

    parser = argparse.ArgumentParser(
        prog="encdec",
        description="Encode/decode files with AES-128-CBC, validating every result before writing it"
    )
    parser.add_argument("-m", "--mode", help="Encoder/decoder mode (encode, decode)")
    parser.add_argument("-k", "--key", help="Encoder/decoder key, up to 16 characters")
    parser.add_argument("-i", "--input", help="Input filename, or a directory for batch mode")
    parser.add_argument(
        "-o", "--output",
        help="Output filename (batch mode: output directory, defaults to the input directory)"
    )
    parser.add_argument(
        "--keep-nuls",
        dest="trim_nuls",
        action="store_false",
        default=None,
        help="Do not trim leading/trailing NUL bytes after removing the padding"
    )
    normalize = parser.add_mutually_exclusive_group()
    normalize.add_argument(
        "--normalize",
        dest="normalize_line_endings",
        action="store_true",
        default=None,
        help="Normalize line endings of the input (default for encode)"
    )
    normalize.add_argument(
        "--no-normalize",
        dest="normalize_line_endings",
        action="store_false",
        help="Read the input bytes exactly (default for decode)"
    )
    parser.add_argument("-j", "--jobs", type=int, default=None, help="Worker threads for batch mode")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only report failures")
    parser.add_argument("--version", action="version", version=f"%(prog)s {encdec.ENGINE_VERSION}")
    args = parser.parse_args(argv)

    if not args.input:
        parser.error("Input and/or output filename is not set!")
    if not args.mode:
        parser.error("Mode is not set!")
    if args.key is None:
        parser.error("Encode/decode key is not set!")
    try:
        mode = encdec.normalize_mode(args.mode)
        encdec.check_passphrase(args.key)
    except ConfigurationError as exc:
        parser.error(str(exc))
    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be at least 1")

    def _say(msg: str) -> None:
        if not args.quiet:
            print(msg)

    def _report(outcome: FileOutcome) -> None:
        if outcome.committed:
            _say(theme.ok(f"{outcome.source}: {outcome.status}"))
        else:
            print(theme.err(f"{outcome.source}: {outcome.status}"), file=encdec.sys.stderr)

    src = encdec._normalize_path(args.input)
    verb = "Encoding" if mode == "encode" else "Decoding"
    if src.is_dir():
        try:
            pairs = encdec.discover(mode, src, args.output)
        except ConfigurationError as exc:
            parser.error(str(exc))
        src_suffix = encdec.SUFFIXES[mode][0]
        if not pairs:
            _say(theme.info(f"No {src_suffix} files found in {src}"))
            return 0
        _say(theme.info(f"{verb} {len(pairs)} file(s) from {src}..."))
        report = encdec.process_batch(
            mode,
            args.key,
            pairs,
            normalize_line_endings=args.normalize_line_endings,
            trim_nuls=args.trim_nuls,
            jobs=args.jobs,
            on_outcome=_report,
        )
        summary = f"{len(report.committed)} succeeded, {len(report.failures)} failed"
        if report.ok:
            _say(theme.ok(summary))
            return 0
        print(theme.err(summary), file=encdec.sys.stderr)
        return 1

    if not args.output:
        parser.error("Input and/or output filename is not set!")
    dst = encdec._normalize_path(args.output)

    def _on_state(state: TransformState) -> None:
        if state is TransformState.TRANSFORMING:
            _say(theme.info(f"{verb} {src} to {dst}..."))
        elif state is TransformState.VALIDATING:
            _say(theme.info("Validating..."))

    outcome = encdec.process_file(
        mode,
        args.key,
        src,
        dst,
        normalize_line_endings=args.normalize_line_endings,
        trim_nuls=args.trim_nuls,
        on_state=_on_state,
    )
    if outcome.committed:
        _say(theme.ok("Success!"))
        return 0
    print(theme.err(outcome.status), file=encdec.sys.stderr)
    return 1


def main(argv=None) -> int:
    try:
        import colorama
        colorama.init()  # Windows consoles need this for ANSI colours
    except ImportError:
        pass  # Colorama is optional
    try:
        return cli(argv)
    except KeyboardInterrupt:
        print("Exiting...")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
