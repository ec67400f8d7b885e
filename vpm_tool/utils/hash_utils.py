"""Hash calculation utilities"""

import hashlib
from pathlib import Path

import aiofiles


def calculate_sha256(file_path: Path, chunk_size: int = 8192) -> str:
    """
    Calculate SHA256 hash of file

    Args:
        file_path: Path to file
        chunk_size: Read chunk size

    Returns:
        Hex digest string
    """
    sha256_hash = hashlib.sha256()

    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            sha256_hash.update(chunk)

    return sha256_hash.hexdigest()


async def calculate_sha256_async(file_path: Path, chunk_size: int = 65536) -> str:
    """Calculate SHA256 hash of file without blocking the event loop"""
    sha256_hash = hashlib.sha256()

    async with aiofiles.open(file_path, 'rb') as f:
        while chunk := await f.read(chunk_size):
            sha256_hash.update(chunk)

    return sha256_hash.hexdigest()


def checksums_match(expected: str, actual: str) -> bool:
    """Compare hex digests ignoring case and surrounding whitespace"""
    return expected.strip().lower() == actual.strip().lower()


def verify_checksum(file_path: Path, expected_checksum: str) -> bool:
    """
    Verify file SHA256 checksum

    Args:
        file_path: Path to file
        expected_checksum: Expected checksum value

    Returns:
        True if checksum matches
    """
    return checksums_match(expected_checksum, calculate_sha256(file_path))
