import asyncio
import os

import dotenv

from sse_source import Propagation, Source, SourceConfig

dotenv.load_dotenv()


async def main() -> None:
    url = os.environ.get("SSE_SOURCE_TEST_URL", "http://localhost:8000/chat")
    config = SourceConfig(headers={"authorization": f"Bearer {os.getenv('SSE_SOURCE_TOKEN', '')}"})

    async with Source.post(url, {"prompt": "hola"}, config) as source:
        def on_token(event):
            print(event.data, end="", flush=True)

        def on_done(event):
            event.source.close()
            return Propagation.STOP

        # Modo avanzado: data llega sin decodificar
        source.add_listener("token", on_token)
        source.add_listener("done", on_done)

        await source.wait_closed()


asyncio.run(main())
