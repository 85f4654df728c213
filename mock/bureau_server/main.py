from fastapi import FastAPI, HTTPException
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Credit Bureau", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/bureau_stub") if os.path.exists("/bureau_stub") else Path(__file__).resolve().parents[2] / "bureau_stub"


def load_record(document_id: str) -> dict:
    records = json.loads((DATA_DIR / "records.json").read_text())
    record = records.get(document_id)
    if record is None:
        raise HTTPException(status_code=404, detail="document not found")
    if record.get("unavailable"):
        raise HTTPException(status_code=503, detail="bureau temporarily unavailable")
    return record


@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/bureau/{document_id}/blacklist")
def blacklist(document_id: str):
    return {"blacklisted": load_record(document_id)["blacklisted"]}

@app.get("/bureau/{document_id}/score")
def score(document_id: str):
    return {"historical_score": load_record(document_id)["historical_score"]}

@app.get("/bureau/{document_id}/active-credits")
def active_credits(document_id: str):
    return {"active_credits": load_record(document_id)["active_credits"]}

@app.get("/bureau/{document_id}/delinquency")
def delinquency(document_id: str):
    return {"recent_delinquency": load_record(document_id)["recent_delinquency"]}
