"""
RibaLOT Core - errors, fingerprints and the audit ledger.

Every LOT the engine produces is fingerprinted (SHA256:BLAKE3) and written
to an append-only receipt ledger. Nothing here knows about species or
vessels; it is shared plumbing for the rest of the package.
"""

import hashlib
import json
import os
import re
from datetime import datetime, timezone

import blake3

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Ledger path (append-only)
LEDGER_PATH = os.path.join(PROJECT_DIR, "receipts.jsonl")

# Vessel configuration written by the one-time setup
VESSEL_CONFIG_PATH = os.path.join(PROJECT_DIR, "vessel.json")

# Counter database shared by every LOT generation on this machine
COUNTER_DB_PATH = os.path.join(PROJECT_DIR, "counters.sqlite3")

# Default tenant for demo
DEFAULT_TENANT = "ribalot-demo"

RECORD_VERSION = "2.0"
COMPLIANCE_STANDARD = "EU_2023_2842"

# Art. 58.8: direct sales to consumers up to this weight may be exempt
SMALL_QUANTITY_EXEMPTION_KG = 10

LOGBOOK_PATTERN = re.compile(r"^HRVLOG\d{13}$")
CFR_PATTERN = re.compile(r"^[A-Z]{3}\d{9,12}$")


class StopRule(Exception):
    """Raised when a stoprule triggers. Never catch silently."""
    pass


class PrerequisiteError(StopRule):
    """Species or vessel inputs are missing before a LOT id can be generated."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("LOT generation failed: " + "; ".join(self.errors))


class ValidationError(StopRule):
    """One or more traceability rules were violated.

    Always carries the complete, de-duplicated list of messages.
    """

    def __init__(self, errors: list[str], issues: list | None = None):
        self.errors = dedupe(errors)
        self.issues = list(issues or [])
        super().__init__("; ".join(self.errors))


class FormatError(StopRule):
    """Unsupported export target."""
    pass


def dedupe(messages) -> list[str]:
    """Drop repeated messages, keeping first-seen order."""
    seen = set()
    result = []
    for message in messages:
        if message not in seen:
            seen.add(message)
            result.append(message)
    return result


def dual_hash(data: bytes | str) -> str:
    """Compute dual hash in SHA256:BLAKE3 format.

    Args:
        data: Input bytes or string to hash.

    Returns:
        String in format "SHA256_<hex>:BLAKE3_<hex>"
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    sha256_hex = hashlib.sha256(data).hexdigest()
    blake3_hex = blake3.blake3(data).hexdigest()

    return f"SHA256_{sha256_hex}:BLAKE3_{blake3_hex}"


def merkle_root(items: list) -> str:
    """Compute BLAKE3 Merkle tree root.

    Args:
        items: List of strings or bytes to build tree from.

    Returns:
        Hex string of Merkle root.
    """
    if not items:
        return blake3.blake3(b"empty").hexdigest()

    leaves = []
    for item in items:
        if isinstance(item, str):
            item = item.encode("utf-8")
        leaves.append(blake3.blake3(item).digest())

    while len(leaves) > 1:
        next_level = []
        for i in range(0, len(leaves), 2):
            if i + 1 < len(leaves):
                combined = leaves[i] + leaves[i + 1]
            else:
                combined = leaves[i] + leaves[i]  # duplicate odd leaf
            next_level.append(blake3.blake3(combined).digest())
        leaves = next_level

    return leaves[0].hex()


def canonical_json(record: dict) -> str:
    """Serialize a record with sorted keys, the form that gets fingerprinted."""
    return json.dumps(record, sort_keys=True, ensure_ascii=False, default=str)


def record_fingerprint(record: dict) -> str:
    """Dual-hash a traceability record, ignoring any stored fingerprint."""
    body = {k: v for k, v in record.items() if k != "fingerprint"}
    return dual_hash(canonical_json(body))


def verify_fingerprint(record: dict) -> bool:
    """True if the record's stored fingerprint matches its content."""
    stored = record.get("fingerprint")
    if not stored:
        return False
    return record_fingerprint(record) == stored


def emit_receipt(receipt_type: str, payload: dict, tenant_id: str | None = None,
                 ledger_path: str | None = None) -> dict:
    """Emit a receipt to the append-only ledger.

    Every receipt gets: ts, tenant_id, payload_hash, receipt_type.
    Appended to the ledger immediately (not batched).

    Args:
        receipt_type: Type of receipt (lot, lot_rejected, lot_notice, ...)
        payload: Receipt payload dict.
        tenant_id: Tenant identifier. Defaults to demo tenant.
        ledger_path: Override ledger file path.

    Returns:
        Complete receipt dict with metadata.
    """
    ts = datetime.now(timezone.utc).isoformat()
    tenant = tenant_id or DEFAULT_TENANT

    receipt = {
        "receipt_type": receipt_type,
        "ts": ts,
        "tenant_id": tenant,
    }
    receipt.update(payload)

    payload_bytes = json.dumps(receipt, sort_keys=True, default=str).encode("utf-8")
    receipt["payload_hash"] = dual_hash(payload_bytes)

    field_values = [str(v) for v in receipt.values()]
    receipt["merkle_root"] = merkle_root(field_values)

    target = ledger_path or LEDGER_PATH
    os.makedirs(os.path.dirname(target) if os.path.dirname(target) else ".", exist_ok=True)
    with open(target, "a", encoding="utf-8") as f:
        f.write(json.dumps(receipt, ensure_ascii=False, default=str) + "\n")

    return receipt


def load_ledger(ledger_path: str | None = None) -> list[dict]:
    """Load all receipts from the ledger.

    Args:
        ledger_path: Override ledger file path.

    Returns:
        List of receipt dicts.
    """
    target = ledger_path or LEDGER_PATH
    if not os.path.exists(target):
        return []

    receipts = []
    with open(target, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                receipts.append(json.loads(line))
    return receipts


def find_receipt(receipt_type: str, key: str, value: str,
                 ledger_path: str | None = None) -> dict | None:
    """Find the most recent matching receipt in the ledger.

    Args:
        receipt_type: Type to filter by.
        key: Field name to match.
        value: Field value to match.
        ledger_path: Override ledger path.

    Returns:
        Last matching receipt or None.
    """
    found = None
    for receipt in load_ledger(ledger_path):
        if receipt.get("receipt_type") == receipt_type and receipt.get(key) == value:
            found = receipt
    return found
