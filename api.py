from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from typing import Any, Dict, Optional
import logging
import secrets
from datetime import date
from pydantic import BaseModel, ValidationError
import analyzer
import billing
import config
import reminders
from mailer import Mailer, default_mailer
from models import Subscription, SubscriptionIn, User
from storage import JsonlStore, SubscriptionStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
log = logging.getLogger("api")

app = FastAPI(title="SubTrack API")

# ── Identity ──────────────────────────────────────────────────────────────────
# Sign-in is handled by the identity provider in front of this service; it
# forwards the signed-in user as X-User-Id (plus X-User-Email / X-User-Name).
USER_ID_HEADER = "X-User-Id"
PUBLIC_PREFIXES = ("/api/cron/", "/api/webhooks/")


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    path = request.url.path
    if path.startswith("/api/") and not path.startswith(PUBLIC_PREFIXES):
        if not request.headers.get(USER_ID_HEADER, "").strip():
            return Response(content='{"error":"unauthorized"}', status_code=401,
                            media_type="application/json")
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Collaborators (overridable in tests) ──────────────────────────────────────
_store: Optional[SubscriptionStore] = None


def get_store() -> SubscriptionStore:
    global _store
    if _store is None:
        _store = JsonlStore(config.DATA_DIR)
    return _store


def get_mailer() -> Mailer:
    return default_mailer()


def get_today() -> date:
    return date.today()


def _external_id(request: Request) -> str:
    return request.headers.get(USER_ID_HEADER, "").strip()


def _require_user(request: Request, store: SubscriptionStore) -> User:
    user = store.get_user_by_external_id(_external_id(request))
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ── Subscriptions ─────────────────────────────────────────────────────────────
@app.get("/api/subscriptions")
def list_subscriptions(request: Request, store: SubscriptionStore = Depends(get_store)) -> list[Subscription]:
    user = _require_user(request, store)
    return store.list_subscriptions(user.id)


@app.post("/api/subscriptions")
def create_subscription(
    sub: SubscriptionIn,
    request: Request,
    store: SubscriptionStore = Depends(get_store),
) -> Subscription:
    """Add a subscription; the first one creates the user record."""
    user = store.get_user_by_external_id(_external_id(request))
    if user is None:
        user = store.upsert_user(
            _external_id(request),
            request.headers.get("X-User-Email", "").strip(),
            request.headers.get("X-User-Name", "").strip() or None,
        )
        log.info(f"Created user for {user.external_id}")

    if not sub.color:
        sub = sub.model_copy(update={"color": billing.get_category(sub.category).color})
    created = store.create_subscription(user.id, sub)
    log.info(f"Added {created.name} ({created.currency} {created.price:,.2f}/{created.billing_cycle})")
    return created


@app.get("/api/subscriptions/{sub_id}")
def get_subscription(sub_id: str, request: Request, store: SubscriptionStore = Depends(get_store)) -> Subscription:
    user = _require_user(request, store)
    sub = store.get_subscription(user.id, sub_id)
    if sub is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return sub


@app.put("/api/subscriptions/{sub_id}")
def update_subscription(
    sub_id: str,
    sub: SubscriptionIn,
    request: Request,
    store: SubscriptionStore = Depends(get_store),
):
    user = _require_user(request, store)
    if not store.update_subscription(user.id, sub_id, sub):
        raise HTTPException(status_code=404, detail="Subscription not found")
    return {"success": True}


@app.delete("/api/subscriptions/{sub_id}")
def delete_subscription(sub_id: str, request: Request, store: SubscriptionStore = Depends(get_store)):
    user = _require_user(request, store)
    if not store.delete_subscription(user.id, sub_id):
        raise HTTPException(status_code=404, detail="Subscription not found")
    return {"success": True}


# ── Dashboard ─────────────────────────────────────────────────────────────────
@app.get("/api/dashboard")
def get_dashboard(
    request: Request,
    store: SubscriptionStore = Depends(get_store),
    today: date = Depends(get_today),
) -> Dict[str, Any]:
    user = store.get_user_by_external_id(_external_id(request))
    subs = store.list_subscriptions(user.id) if user else []
    report = analyzer.build_dashboard(subs, today)
    report["display_name"] = (user.name if user else None) or "there"
    return report


@app.get("/api/options")
def get_options():
    return billing.catalogue()


# ── Identity provider webhook ─────────────────────────────────────────────────
class WebhookUser(BaseModel):
    id: str
    email_addresses: list[Dict[str, Any]] = []
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class WebhookEvent(BaseModel):
    type: str
    data: WebhookUser


@app.post("/api/webhooks/identity")
async def identity_webhook(request: Request, store: SubscriptionStore = Depends(get_store)):
    """Mirror user.created / user.updated / user.deleted from the identity provider."""
    # Check the secret before looking at the body at all
    presented = request.headers.get("X-Webhook-Secret", "")
    if not config.WEBHOOK_SECRET or not secrets.compare_digest(presented.encode(), config.WEBHOOK_SECRET.encode()):
        return PlainTextResponse("Invalid signature", status_code=400)

    try:
        event = WebhookEvent.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        log.warning(f"Rejected malformed webhook payload: {exc}")
        return PlainTextResponse("Invalid payload", status_code=400)

    data = event.data
    if event.type in ("user.created", "user.updated"):
        email = data.email_addresses[0].get("email_address", "") if data.email_addresses else ""
        name = " ".join(p for p in (data.first_name, data.last_name) if p) or None
        store.upsert_user(data.id, email, name)
        log.info(f"Synced user {data.id} ({event.type})")
    elif event.type == "user.deleted":
        if not store.delete_user(data.id):
            log.info(f"Delete for unknown user {data.id} ignored")
    return PlainTextResponse("Webhook processed")


# ── Cron: renewal reminders ───────────────────────────────────────────────────
@app.get("/api/cron/reminders")
def cron_reminders(
    request: Request,
    store: SubscriptionStore = Depends(get_store),
    mailer: Mailer = Depends(get_mailer),
    today: date = Depends(get_today),
):
    try:
        result = reminders.trigger_sweep(
            request.headers.get("Authorization"),
            config.CRON_SECRET,
            store,
            mailer,
            today,
            max_workers=config.REMINDER_MAX_WORKERS,
            ledger=reminders.default_ledger(),
        )
    except reminders.TriggerUnauthorized:
        return PlainTextResponse("Unauthorized", status_code=401)

    if not result.success:
        return JSONResponse({"success": False, "error": "Cron job failed"}, status_code=500)
    return {"success": True, "emailsSent": result.emails_sent}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
