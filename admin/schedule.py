import asyncio
import logging
import sys

sys.path.append("./")
from webreg.client import WebRegClient
from webreg.conv import event_to_str, scheduled_to_str
from webreg.errors import WebRegError

logger = logging.getLogger(__name__)


async def show_schedule(schedule_name: str | None = None):
    async with WebRegClient.from_env() as client:
        if not await client.is_valid():
            logger.error("Session is not valid; refresh WEBREG_COOKIES")
            return

        logger.info("Schedules: %s", ", ".join(await client.get_schedule_list()))
        for section in await client.get_schedule(schedule_name):
            print(scheduled_to_str(section))
        for event in await client.get_events():
            print(event_to_str(event))


if __name__ == "__main__":
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    try:
        asyncio.run(show_schedule(sys.argv[1] if len(sys.argv) > 1 else None))
    except WebRegError as e:
        print(e)
