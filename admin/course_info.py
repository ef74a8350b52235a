import asyncio
import logging
import sys

sys.path.append("./")
from webreg.client import WebRegClient
from webreg.conv import section_to_str
from webreg.errors import WebRegError


async def show_course(subject_code: str, course_code: str):
    async with WebRegClient.from_env() as client:
        await client.associate_term(client.term)
        sections = await client.get_course_info(subject_code, course_code)
        for section in sections:
            print(section_to_str(section))

        prerequisites = await client.get_prerequisites(subject_code, course_code)
        for group in prerequisites.course_prerequisites:
            print(" or ".join(f"{p.subject_code} {p.course_code}" for p in group))


if __name__ == "__main__":
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    if len(sys.argv) != 3:
        print("Usage: python admin/course_info.py <subject> <course>")
        sys.exit(1)

    try:
        asyncio.run(show_course(sys.argv[1], sys.argv[2]))
    except WebRegError as e:
        print(e)
    else:
        print("Done!")
