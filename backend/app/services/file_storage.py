"""Blob storage on the local filesystem.

The engine treats the returned storage path as opaque; only this module
knows it is a file path.
"""
import os
import uuid
import aiofiles
from pathlib import Path


class FileStorageService:
    """Handles file read/write under one base directory."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def save(self, file_bytes: bytes, original_name: str) -> str:
        """Save file bytes. Returns the storage path."""
        file_id = str(uuid.uuid4())
        ext = Path(original_name).suffix
        filename = f"{file_id}{ext}"

        file_path = self.base_path / filename
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(file_bytes)
        return str(file_path)

    async def read(self, storage_path: str) -> bytes:
        """Read file bytes from storage path. Raises FileNotFoundError if gone."""
        async with aiofiles.open(storage_path, "rb") as f:
            return await f.read()

    async def delete(self, storage_path: str) -> None:
        """Delete file from storage. Missing files are ignored."""
        path = Path(storage_path)
        if path.exists():
            os.remove(path)
