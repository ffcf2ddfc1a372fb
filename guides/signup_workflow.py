"""Run the bundled sample signup workflow and print its events."""

import asyncio

from stepflow import create_engine
from stepflow.samples import SAMPLE_SIGNUP_ID


async def main():
    engine = await create_engine()
    try:
        instance = await engine.trigger(
            SAMPLE_SIGNUP_ID, {"email": "ada@example.com", "password": "s3cret"}
        )
        print(f"Triggered {instance.instance_id} ({instance.status.value})")

        instance = await engine.wait_for(instance.instance_id, timeout=30)
        print(f"Finished with status {instance.status.value}")
        for record in instance.history:
            print(f"  {record.step_id}: {record.status.value}")
        print(instance.current_payload)
    finally:
        await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
