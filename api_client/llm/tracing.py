from datetime import datetime, timezone
from typing import Any, Dict, Optional


def build_trace_entry(
    oracle_name: str,
    model_name: str,
    prompt_id: str,
    raw_response: str,
    parsed: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "oracle_name": oracle_name,
        "model_name": model_name,
        "prompt_id": prompt_id,
        "raw_response": raw_response,
        "parsed": parsed,
        "captured_at": datetime.now(timezone.utc).isoformat(),
    }
