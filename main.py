"""Simple entrypoint to boot the Wardrobe Keeper backend locally."""

import json

from wardrobe_app.app import WardrobeApp


def main() -> None:
    app = WardrobeApp()
    app.start()
    print(json.dumps(app.status()))


if __name__ == "__main__":
    main()
