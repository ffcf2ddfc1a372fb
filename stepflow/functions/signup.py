"""Simulated user-signup functions used by the sample workflow."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any

from . import FUNCTIONS

logger = logging.getLogger(__name__)

# Seconds each simulated call pretends to spend on I/O.
SIMULATED_LATENCY = 0.01


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@FUNCTIONS.register("validateUserData")
async def validate_user_data(data: Any) -> dict:
    logger.info(f"Validating user data: {data}")
    if not isinstance(data, dict) or not data.get("email") or not data.get("password"):
        raise ValueError("Validation Error: Email and password are required.")
    await asyncio.sleep(SIMULATED_LATENCY)
    return {**data, "validated": True, "validationTimestamp": _now()}


@FUNCTIONS.register("createUserInDB")
async def create_user_in_db(data: Any) -> dict:
    logger.info(f"Creating user in DB with data: {data}")
    if not isinstance(data, dict) or not data.get("validated"):
        raise ValueError("User data not validated before DB creation attempt.")
    await asyncio.sleep(SIMULATED_LATENCY)
    user_id = f"user_{int(time.time() * 1000)}"
    return {**data, "userId": user_id, "dbTimestamp": _now()}


@FUNCTIONS.register("sendWelcomeEmail")
async def send_welcome_email(data: Any) -> dict:
    if not isinstance(data, dict) or not data.get("userId") or not data.get("email"):
        raise ValueError("Cannot send email without userId and email.")
    logger.info(f"Sending welcome email to {data['email']} for user ID {data['userId']}")
    await asyncio.sleep(SIMULATED_LATENCY)
    return {**data, "emailSent": True, "emailSentTimestamp": _now()}


@FUNCTIONS.register("logAnalytics")
async def log_analytics(data: Any) -> dict:
    logger.info(f"Logging analytics: {data}")
    await asyncio.sleep(SIMULATED_LATENCY)
    base = data if isinstance(data, dict) else {}
    return {**base, "analyticsLogged": True}


@FUNCTIONS.register("makeExternalApiCall")
async def make_external_api_call(data: Any) -> dict:
    logger.info(f"Making external API call with: {data}")
    await asyncio.sleep(SIMULATED_LATENCY)
    base = data if isinstance(data, dict) else {}
    return {**base, "externalResponse": {"status": 200, "data": "mock_api_response"}}
