from fastapi import Request


def set_flash(request: Request, message: str, kind: str = "success"):
    request.session["flash"] = {"kind": kind, "message": message}


def pop_flash(request: Request) -> dict | None:
    if "session" not in request.scope:
        return None
    return request.session.pop("flash", None)
