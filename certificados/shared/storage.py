import os
import tempfile

from flask import current_app


def ensure_dir(path: str) -> None:
    """Create directory if missing (mkdir -p equivalent)."""
    os.makedirs(path, exist_ok=True)


def write_atomic(path: str, data, mode: str = "wb") -> None:
    """Write data to a temporary file then atomically rename to target path."""
    dir_path = os.path.dirname(path)
    ensure_dir(dir_path)
    fd, tmp_path = tempfile.mkstemp(dir=dir_path)
    try:
        with os.fdopen(fd, mode) as f:
            f.write(data)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def certificates_dir() -> str:
    return current_app.config["CERTIFICATES_DIR"]


def certificate_path(filename: str) -> str:
    return os.path.join(certificates_dir(), os.path.basename(filename))


def certificate_url(filename: str) -> str:
    return f"{current_app.config['CERTIFICATES_BASE_URL']}/{filename}"


def reserve_filename(base: str, ext: str = ".pdf") -> str:
    """Claim ``base + ext`` in the certificates dir, suffixing -2, -3... if taken.

    The placeholder file is created exclusively so two concurrent
    generations never get the same name.
    """
    directory = certificates_dir()
    ensure_dir(directory)
    attempt = 1
    while True:
        name = f"{base}{ext}" if attempt == 1 else f"{base}-{attempt}{ext}"
        try:
            fd = os.open(
                os.path.join(directory, name), os.O_CREAT | os.O_EXCL | os.O_WRONLY
            )
        except FileExistsError:
            attempt += 1
            continue
        os.close(fd)
        return name


def remove_certificate_file(filename: str | None) -> bool:
    """Best-effort removal; failures are logged, never raised."""
    if not filename:
        return False
    path = certificate_path(filename)
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError:
        current_app.logger.exception("[CERT-FILE] failed to remove %s", path)
        return False
