"""Run the demo: `python -m tracelog`."""

from tracelog.demo import app

if __name__ == "__main__":
    app()
