from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import List, Optional
from contextlib import asynccontextmanager
import io
import os
import random
import uvicorn

from b93_errors import B93Error
from b93_loader import load_playfield
from bvm import BVM

# Step limit applied when a request does not name its own
DEFAULT_MAX_STEPS = int(os.environ.get("B93_MAX_STEPS", "1000000"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    print(f"[Server] Node started. Step limit per run: {DEFAULT_MAX_STEPS}.")
    yield
    print("[Server] Shutting down...")


app = FastAPI(title="B93 Playfield Runner", lifespan=lifespan)


# --- API schemas ---

class RunRequest(BaseModel):
    source: str
    stdin: str = ""
    seed: Optional[int] = None
    max_steps: Optional[int] = None


class RunResponse(BaseModel):
    status: str
    stdout: str
    steps: int
    stack: List[int]
    message: Optional[str] = None


class LoadRequest(BaseModel):
    source: str


# --- Helpers ---

def to_bytes(text):
    """Source and stdin travel as latin-1 so each character is one byte."""
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError:
        raise HTTPException(status_code=400, detail="text must only contain characters U+0000..U+00FF")


def load_or_400(source):
    try:
        return load_playfield(to_bytes(source))
    except B93Error as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Endpoints ---

@app.get("/health")
def health():
    return {"status": "ok", "max_steps": DEFAULT_MAX_STEPS}


@app.post("/load")
def load(req: LoadRequest):
    playfield = load_or_400(req.source)
    return {"rows": [row.decode("latin-1").rstrip(" ") for row in playfield]}


@app.post("/run", response_model=RunResponse)
def run(req: RunRequest):
    max_steps = req.max_steps if req.max_steps is not None else DEFAULT_MAX_STEPS
    if max_steps <= 0:
        raise HTTPException(status_code=400, detail="max_steps must be positive")
    if max_steps > DEFAULT_MAX_STEPS:
        raise HTTPException(status_code=400, detail=f"max_steps must not exceed {DEFAULT_MAX_STEPS}")

    vm = BVM(load_or_400(req.source))
    rdr = io.BufferedReader(io.BytesIO(to_bytes(req.stdin)))
    wtr = io.BytesIO()
    rng = random.Random(req.seed)

    status, message = "halted", None
    try:
        if not vm.run(rdr, wtr, rng, max_steps=max_steps):
            status = "step_limit"
    except B93Error as e:
        status, message = "error", str(e)

    return RunResponse(
        status=status,
        stdout=wtr.getvalue().decode("latin-1"),
        steps=vm.steps,
        stack=vm.stack,
        message=message,
    )


if __name__ == "__main__":
    uvicorn.run(app, host=os.environ.get("B93_HOST", "0.0.0.0"), port=int(os.environ.get("B93_PORT", "8000")))
