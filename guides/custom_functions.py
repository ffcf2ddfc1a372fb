"""Register your own step functions and a definition that uses them.

Run with a Redis-backed store and Kafka events by pointing STEPFLOW_CONFIG
at ``guides/config.example.yaml``.
"""

import asyncio

from stepflow import FUNCTIONS, create_engine


@FUNCTIONS.register("fetchQuote")
async def fetch_quote(data):
    await asyncio.sleep(0.1)
    return {"symbol": data["symbol"], "price": 42.0}


@FUNCTIONS.register("applyFx")
async def apply_fx(quote):
    return {**quote, "price_eur": round(quote["price"] * 0.92, 2)}


QUOTE_WORKFLOW = {
    "name": "Quote in EUR",
    "start_at": "fetch",
    "steps": {
        "fetch": {
            "name": "Fetch quote",
            "function_name": "fetchQuote",
            "input_path": "$.request",
            "result_path": "$.quote",
            "next_step_id": "convert",
        },
        "convert": {
            "name": "Convert currency",
            "function_name": "applyFx",
            "input_path": "$.quote",
            "result_path": "$.quote",
        },
    },
}


async def main():
    engine = await create_engine()
    try:
        if await engine.definitions.get_by_name(QUOTE_WORKFLOW["name"]) is None:
            await engine.definitions.create(QUOTE_WORKFLOW)

        instance = await engine.trigger("Quote in EUR", {"request": {"symbol": "ACME"}})
        instance = await engine.wait_for(instance.instance_id, timeout=30)
        print(instance.status.value, instance.current_payload)
    finally:
        await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
