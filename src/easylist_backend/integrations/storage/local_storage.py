from __future__ import annotations

from pathlib import Path, PurePosixPath

from starlette.concurrency import run_in_threadpool


def _key_parts(key: str) -> tuple[str, ...]:
    pure = PurePosixPath(key)
    if pure.is_absolute() or not pure.parts or any(p in {"..", "."} for p in pure.parts):
        raise ValueError(f"invalid storage key: {key!r}")
    return pure.parts


def _write_atomically(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = path.with_suffix(path.suffix + ".part")
    _ = partial.write_bytes(data)
    _ = partial.replace(path)


class LocalObjectStorage:
    """Cover images kept under ``root_dir``; keys are relative POSIX paths."""

    def __init__(self, *, root_dir: str) -> None:
        self._root = Path(root_dir)

    def resolve_path(self, key: str) -> Path:
        return self._root.joinpath(*_key_parts(key))

    async def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        # The filesystem keeps no metadata; the key suffix carries the type.
        _ = content_type
        await run_in_threadpool(_write_atomically, self.resolve_path(key), data)

    async def get_bytes(self, key: str) -> bytes:
        return await run_in_threadpool(self.resolve_path(key).read_bytes)

    async def delete(self, key: str) -> None:
        await run_in_threadpool(self.resolve_path(key).unlink, missing_ok=True)
