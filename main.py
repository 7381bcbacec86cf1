"""
Main application file for PraxisNotes
Run this file to start the application: python main.py
"""
import logging
import os

import gradio as gr
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from praxisnotes.config import LOG_DIR
from praxisnotes.ui_session_report import create_session_report_ui, setup_session_report_events

os.makedirs(LOG_DIR, exist_ok=True)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(os.path.join(LOG_DIR, "praxisnotes.log")),
        logging.StreamHandler()
    ]
)


def create_app():
    """Create the complete Gradio application."""

    with gr.Blocks(theme=gr.themes.Soft(), title="PraxisNotes", css="""
        .title {text-align: center; margin: 20px 0;}
        .cover-buttons {max-width: 600px; margin: 0 auto;}
        .left-panel {padding: 20px; background: #f8f9fa; border-radius: 10px;}
        .save-section {padding: 15px; background: #e7f3ff; border-radius: 8px; margin: 15px 0;}
        .scrollable-textbox textarea {
            max-height: 500px !important;
            overflow-y: auto !important;
        }
    """) as app:

        # === COVER PAGE ===
        with gr.Column(visible=True, elem_classes="cover-buttons") as cover_page:
            gr.Markdown("# PraxisNotes", elem_classes="title")
            gr.Markdown("### RBT Session Report Writer", elem_classes="title")

            gr.Markdown("")
            btn_report = gr.Button("Create Session Report", size="lg", variant="primary")

        # === CREATE PAGE UI ===
        report_components = create_session_report_ui()

        # === NAVIGATION FUNCTIONS ===
        def show_report():
            return {
                cover_page: gr.update(visible=False),
                report_components["page"]: gr.update(visible=True)
            }

        def show_cover():
            return {
                cover_page: gr.update(visible=True),
                report_components["page"]: gr.update(visible=False)
            }

        btn_report.click(
            show_report,
            outputs=[cover_page, report_components["page"]]
        )

        report_components["back_btn"].click(
            show_cover,
            outputs=[cover_page, report_components["page"]]
        )

        # === SETUP EVENT HANDLERS ===
        setup_session_report_events(report_components)

    return app


if __name__ == "__main__":
    app = create_app()

    # Local development: Use 127.0.0.1 and auto-open browser
    app.launch(
        server_name="127.0.0.1",
        server_port=7860,
        inbrowser=True
    )
