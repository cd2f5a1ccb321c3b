"""
Uso:
    python tools/waitlist.py subscribe <email>
    python tools/waitlist.py countdown
"""
from datetime import datetime
from pathlib import Path
import logging, sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.client.countdown import get_countdown
from app.client.form import FormHandler
from app.core.config import ClientSettings

logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(message)s")


def main(argv: list[str]) -> int:
    cmd = argv[1] if len(argv) > 1 else ""
    settings = ClientSettings()

    if cmd == "subscribe" and len(argv) == 3:
        result = FormHandler(settings).submit(argv[2])
        print(result.message)
        return 0 if result.ok else 1

    if cmd == "countdown":
        c = get_countdown(datetime.fromisoformat(settings.launch_at))
        print(f"{c.days} days {c.hours} hours {c.minutes} minutes {c.seconds} seconds")
        return 0

    print(__doc__.strip(), file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv))
