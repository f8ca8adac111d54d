"""Main application entry point for Clipster."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from clipster import __version__
from clipster.audio.buffer import SampleBuffer
from clipster.audio.capture import AudioCapture
from clipster.errors import StartupError
from clipster.hotkeys.listener import HotkeyListener
from clipster.hotkeys.publisher import HotkeyPublisher
from clipster.providers.registry import ProviderRegistry
from clipster.services.output_service import OutputService
from clipster.services.session_controller import SessionController
from clipster.transcription.whisper_backend import WhisperBackend
from clipster.ui.console import ClipsterConsole

from .config import ClipsterConfig

logger = logging.getLogger(__name__)


class ClipsterApp:

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration
        self.config = ClipsterConfig(config_path)
        # Command line level wins over config
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.console = ClipsterConsole()
        self.should_exit = False

        self.transcriber: Optional[WhisperBackend] = None
        self.audio_capture: Optional[AudioCapture] = None
        self.controller: Optional[SessionController] = None
        self.hotkey_listener: Optional[HotkeyListener] = None

    def init(self):
        """Build every collaborator. Raises StartupError if the app cannot run."""
        logger.info("Initializing services...")

        self.registry = ProviderRegistry.from_environment(
            provider_config=self.config.get_provider_overrides(),
            timeout_seconds=float(self.config.get('chat.timeout_seconds', 120)),
            connect_timeout_seconds=float(self.config.get('chat.connect_timeout_seconds', 10)),
        )

        model_name = self.config.get('transcription.model', 'tiny.en')
        self.console.notice(f"Loading speech model {model_name}...")
        self.transcriber = WhisperBackend(
            model=model_name,
            device=self.config.get('transcription.device', 'cpu'),
            compute_type=self.config.get('transcription.compute_type', 'int8'),
            language=self.config.get('transcription.language', 'en'),
            beam_size=int(self.config.get('transcription.beam_size', 1)),
        )
        if not self.transcriber.initialize():
            raise StartupError(f"Could not load speech model '{model_name}' (see log for details)")

        lock_timeout_ms = self.config.get('audio.lock_timeout_ms', 5)
        self.audio_capture = AudioCapture(
            buffer=SampleBuffer(lock_timeout_seconds=lock_timeout_ms / 1000.0),
            frames_per_buffer=int(self.config.get('audio.frames_per_buffer', 1024)),
            max_channels=int(self.config.get('audio.max_channels', 2)),
            encodings=self.config.get('audio.encodings', ['float32', 'int16', 'uint16']),
        )
        logger.info(f"Audio settings: {self.audio_capture.frames_per_buffer} frames/buffer, "
                    f"max {self.audio_capture.max_channels} channels")

        output = OutputService(notifications_enabled=bool(self.config.get('output.notifications', True)))

        self.controller = SessionController(
            registry=self.registry,
            capture=self.audio_capture,
            transcriber=self.transcriber,
            output=output,
            console=self.console,
            preview_length=int(self.config.get('output.preview_length', 100)),
        )
        self.controller.subscribe()
        self.controller.start()

        self.hotkey_publisher = HotkeyPublisher()
        self.hotkey_listener = HotkeyListener(self.hotkey_publisher.publish_hotkey_event)
        self.registry.register_hotkeys(self.hotkey_listener)
        self.hotkey_listener.start()

        self.console.banner(self.registry, model_name)

    def run(self):
        try:
            while not self.should_exit:
                time.sleep(1)
        finally:
            self.cleanup()

    def cleanup(self):
        if self.hotkey_listener:
            self.hotkey_listener.stop()
            self.hotkey_listener = None
        if self.controller:
            self.controller.shutdown()
            self.controller = None
        if self.transcriber:
            self.transcriber.cleanup()
            self.transcriber = None
        logger.info("Clipster shut down")


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging configuration from YAML config."""
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid logging level '{level}' (use DEBUG, INFO, WARNING or ERROR)")

    log_file_path = config.get('logging.file_path', str(Path.home() / '.clipster' / 'logs' / 'clipster.log'))
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Status lines go through rich; only problems here
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info(f"Clipster {__version__} starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for Clipster."""
    parser = argparse.ArgumentParser(
        description="Clipster - hold a hotkey, ask an AI by voice, paste the answer",
        epilog="Set ANTHROPIC_API_KEY, OPENAI_API_KEY and/or XAI_API_KEY to enable providers."
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: $CLIPSTER_CONFIG, else built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Clipster v{__version__}"
    )

    args = parser.parse_args()

    try:
        app = ClipsterApp(args.config, args.log_level)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    try:
        app.init()
        app.run()
    except StartupError as e:
        app.console.error("startup", str(e))
        logging.error(f"Startup failed: {e}")
        app.cleanup()
        sys.exit(1)
    except KeyboardInterrupt:
        app.cleanup()
        app.console.goodbye()
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}", exc_info=True)
        app.cleanup()
        sys.exit(1)


if __name__ == "__main__":
    main()
