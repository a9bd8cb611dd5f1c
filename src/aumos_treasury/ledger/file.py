# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
File persistence for the ledger's export document.

The ledger is not durable on its own; these helpers write and read the same
JSON document produced by :meth:`PaymentLedger.export_json`. Saving writes a
sibling temporary file first and then replaces the target, so a crash never
leaves a half-written document behind.
"""
from __future__ import annotations

from pathlib import Path

import aiofiles
import aiofiles.os

from aumos_treasury.errors import LedgerImportError
from aumos_treasury.ledger.ledger import PaymentLedger


async def save_ledger(ledger: PaymentLedger, file_path: str | Path) -> Path:
    """
    Write the ledger's persistence document to ``file_path``.

    Returns:
        The path written.
    """
    path = Path(file_path)
    temp_path = path.with_name(path.name + ".tmp")
    payload = ledger.export_json()
    async with aiofiles.open(temp_path, mode="w", encoding="utf-8") as file_handle:
        await file_handle.write(payload)
    await aiofiles.os.replace(temp_path, path)
    return path


async def load_ledger(ledger: PaymentLedger, file_path: str | Path) -> bool:
    """
    Replace the ledger's state with the document stored at ``file_path``.

    Returns:
        False when the file does not exist (the ledger is left untouched),
        True once the document has been imported.

    Raises:
        LedgerImportError: If the file exists but does not hold a valid
            ledger document.
    """
    path = Path(file_path)
    if not await aiofiles.os.path.exists(path):
        return False
    async with aiofiles.open(path, mode="r", encoding="utf-8") as file_handle:
        payload = await file_handle.read()
    if not payload.strip():
        raise LedgerImportError(f"Ledger file is empty: {path}")
    ledger.import_json(payload)
    return True
