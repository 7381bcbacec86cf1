"""
Docker-specific entry point for PraxisNotes

Imports create_app() from main.py; only the launch() configuration differs.
"""

from main import create_app

if __name__ == "__main__":
    app = create_app()

    # Bind to 0.0.0.0 so the app is reachable from outside the container
    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
