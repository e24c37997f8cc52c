"""Ingest question JSON / JSONL from the admin console or CLI; bulk UPSERT into questions."""
import json
import argparse
import logging
from pathlib import Path
from uuid import uuid5, NAMESPACE_DNS

MAX_OPTIONS = 10


def parse_question(raw: dict) -> dict | None:
    """Map one raw question object to a questions row. Returns None if invalid/skip."""
    if not isinstance(raw, dict):
        return None
    text = (raw.get("question") or raw.get("text") or "").strip()
    options = raw.get("options")
    if not text or not isinstance(options, list) or len(options) < 2:
        return None
    options = [str(o) for o in options[:MAX_OPTIONS]]
    correct_option = raw.get("correct_option", 0)
    if not isinstance(correct_option, int) or not 0 <= correct_option < len(options):
        return None
    subject = (raw.get("subject") or "general").strip().lower()
    return {
        # Same text in the same subject always maps to the same id, so re-imports upsert.
        "id": str(raw.get("id") or uuid5(NAMESPACE_DNS, f"{subject}:{text}")),
        "subject": subject,
        "question": text,
        "options": options,
        "correct_option": correct_option,
        "explanation": raw.get("explanation") or "",
    }


def parse_payload(payload: str) -> tuple[list[dict], int]:
    """
    Parse pasted text: a JSON array, a single object, or JSON Lines.

    Returns (rows, skipped). Raises ValueError when nothing parses at all.
    """
    payload = payload.strip()
    if not payload:
        raise ValueError("Nothing to import")
    try:
        data = json.loads(payload)
        items = data if isinstance(data, list) else [data]
    except json.JSONDecodeError:
        items = []
        for line in payload.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                items.append(json.loads(line))
            except json.JSONDecodeError:
                items.append(None)
        if not any(items):
            raise ValueError("Payload is neither JSON nor JSON Lines")
    rows = [r for r in (parse_question(i) for i in items) if r]
    return rows, len(items) - len(rows)


def run_import(path: Path, chunk_size: int = 200, dry_run: bool = False):
    if not path.exists():
        raise FileNotFoundError(f"Question file not found: {path}")
    rows, skipped = parse_payload(path.read_text(encoding="utf-8"))
    if dry_run:
        print(f"Dry run: would upsert {len(rows)} questions from {path} ({skipped} skipped)")
        if rows:
            print("Sample row:", rows[0])
        return
    from db import get_database_uncached

    get_database_uncached().upsert_questions_batch(rows, chunk_size=chunk_size)
    print(f"Upserted {len(rows)} questions from {path} ({skipped} skipped)")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Import question JSON/JSONL into Supabase questions.")
    parser.add_argument("path", help="Path to .json or .jsonl")
    parser.add_argument("--chunk-size", type=int, default=200, help="Upsert chunk size (default 200)")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not upsert")
    args = parser.parse_args()
    run_import(Path(args.path), chunk_size=args.chunk_size, dry_run=args.dry_run)
