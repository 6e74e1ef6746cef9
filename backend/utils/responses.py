from fastapi.responses import JSONResponse

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

def no_store_json(data, status_code: int = 200, headers: dict = None):
    """Return JSONResponse with no-store caching headers."""
    merged = {**NO_STORE_HEADERS, **(headers or {})}
    return JSONResponse(content=data, status_code=status_code, headers=merged)

def error_json(message: str, status_code: int, headers: dict = None):
    return no_store_json({"error": message}, status_code=status_code, headers=headers)
