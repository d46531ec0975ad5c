#!/usr/bin/env python3
import sys
import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

import Auth.users as users
from Auth.auth import get_current_claims
from Auth.models import Credentials, RegisterIn, TokenClaims
import Auth.security as security
from Auth.security import create_access_token
from Dashboard.routes import router as data_router
from Notify.broadcast import ConnectionManager
from Quote.quote import QuoteError, fetch_quote
from ratelimit import RateLimitMiddleware
from Storage.database import init_db, get_session

load_dotenv()

# Configure logging to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not security.SECRET_KEY:
        raise RuntimeError("JWT_SECRET is not configured; refusing to start")
    init_db()
    app.state.manager = ConnectionManager()
    logger.info("Dashboard backend started")
    yield
    await app.state.manager.close_all()


# ─── FASTAPI SETUP ─────────────────────────────────────────────────────────
app = FastAPI(
    title="Data Dashboard",
    description="Labeled data points, charts feed and live updates",
    version="1.0.0",
    lifespan=lifespan,
)

# added last = outermost, so 429s from the limiter still get CORS headers
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(data_router)


# ─── AUTH ──────────────────────────────────────────────────────────────────
@app.post("/register", status_code=status.HTTP_201_CREATED, tags=["Auth"])
def register(data: RegisterIn, db: Session = Depends(get_session)):
    """Create a user; role defaults to viewer."""
    try:
        user = users.register(db, data.username, data.secret, data.role)
    except users.DuplicateUserError:
        raise HTTPException(status.HTTP_409_CONFLICT, "Username already taken")
    except users.CredentialStoreError as e:
        logger.error(f"Registration failed: {e}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not register user")

    return {"message": "User registered", "username": user.username, "role": user.role.value}


@app.post("/login", summary="Obtain JWT access token", tags=["Auth"])
def login(creds: Credentials, db: Session = Depends(get_session)):
    """Validate credentials and issue a signed JWT that contains a role claim."""
    user = users.verify(db, creds.username, creds.secret)
    if not user:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Invalid username or secret")

    token = create_access_token(user.username, user.role)
    return {"token": token, "token_type": "bearer"}


# ─── EXTERNAL ──────────────────────────────────────────────────────────────
@app.get("/external-quote", tags=["External"])
def external_quote(_: TokenClaims = Depends(get_current_claims)):
    try:
        return fetch_quote()
    except QuoteError as e:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, str(e))


# ─── ROOT & HEALTH ─────────────────────────────────────────────────────────
@app.get("/", include_in_schema=False)
def root():
    """
    Simple root endpoint so `GET /` and `HEAD /` return 200.
    """
    return {"status": "ok"}

@app.get("/health", tags=["Health"])
def health_check():
    logger.info("Health check invoked")
    return {"status": "ok", "time": datetime.utcnow().isoformat()}


# ─── Uvicorn LAUNCH (DEV ONLY) ─────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True
    )
