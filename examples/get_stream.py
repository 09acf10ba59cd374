import asyncio
import os

import dotenv

from sse_source import Source

dotenv.load_dotenv()


async def main() -> None:
    source = Source.get(os.environ.get("SSE_SOURCE_TEST_URL", "http://localhost:8000/events"))

    source.onopen = lambda e: print("-- open")
    source.onerror = lambda e: print("-- error:", e.data)
    source.on("message", lambda e: print(e.id, e.data))  # data ya viene decodificado si es JSON

    await source.wait_closed()
    await source.aclose()


asyncio.run(main())
