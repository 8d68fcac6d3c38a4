"""Uniform success/failure response envelope.

Both builders are pure and total: they never raise, whatever they are given.
"""


def ok(field: str, value: str, message: str) -> dict:
    """`{success: true, <field>: value, message}`."""
    return {"success": True, field: value, "message": message}


def fail(err, message: str) -> dict:
    """`{success: false, error, message}` with the error's text (or its class name)."""
    try:
        text = str(err)
    except Exception:
        text = ""
    if not text:
        text = type(err).__name__
    return {"success": False, "error": text, "message": message}
