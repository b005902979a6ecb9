from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
import itertools
import os

app = FastAPI(title="Mock Celcoin Cards Server", version="1.0.0")
# Holder names listed here get a 400, mirroring a sandbox card-creation failure
FAILING_HOLDERS = set(filter(None, os.environ.get("CELCOIN_FAILING_HOLDERS", "DECLINE ME").split(",")))
_card_ids = itertools.count(10_000)

@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/cards/v1/accounts/{account}/customers/{customer}/card")
def create_card(account: int, customer: int, body: dict, authorization: str | None = Header(default=None)):
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="missing bearer token")
    if body.get("printedName") in FAILING_HOLDERS:
        return JSONResponse(status_code=400, content={"errorCode": "CELCOIN_ERROR", "message": "Virtual card creation failed"})
    return JSONResponse(content={
        "id": next(_card_ids),
        "name": body.get("name"),
        "printedName": body.get("printedName"),
        "type": body.get("type", "VIRTUAL"),
        "transactionLimit": body.get("transactionLimit"),
        "contactlessEnabled": body.get("contactlessEnabled", True),
        "modeType": body.get("modeType", "SINGLE"),
        "customerId": customer,
        "tenantCostCenter": 14574,
    })
