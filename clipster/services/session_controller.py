"""Push-to-talk session state machine and post-capture pipeline."""

import asyncio
import logging
import queue
import threading
import time
from typing import Optional

from pubsub import pub

from ..audio.capture import AudioCapture
from ..audio.processing import normalize_audio, resample_to_16khz
from ..errors import CaptureError, ClipsterError
from ..hotkeys.publisher import HOTKEY_TOPIC
from ..models.events import HotkeyEvent, SessionEvent
from ..models.session import PipelineResult, PipelineStatus, RecordingSession, SessionState
from ..providers.prompts import SYSTEM_PROMPT, build_messages, clean_response, preview
from ..providers.registry import ProviderBinding, ProviderRegistry
from ..transcription.base import AbstractTranscriptionBackend
from ..ui.console import ClipsterConsole
from .output_service import OutputService

logger = logging.getLogger(__name__)

SESSION_TOPIC = "session.events"


class SessionController:
    """Maps hotkey events onto at most one active recording.

    Events are consumed one at a time from a single queue by one worker
    thread, which owns the asyncio loop the pipeline runs on. A release for
    the active provider runs the whole pipeline before the next event is
    looked at; presses that arrived while the pipeline was busy are dropped.
    """

    def __init__(self,
                 registry: ProviderRegistry,
                 capture: AudioCapture,
                 transcriber: AbstractTranscriptionBackend,
                 output: OutputService,
                 console: Optional[ClipsterConsole] = None,
                 system_prompt: str = SYSTEM_PROMPT,
                 preview_length: int = 100,
                 hotkey_topic: str = HOTKEY_TOPIC,
                 session_topic: str = SESSION_TOPIC):
        """Initialize session controller.

        Args:
            registry: Provider bindings, read-only after startup
            capture: Microphone capture shared by all providers
            transcriber: Loaded speech-to-text backend
            output: Clipboard and notification collaborators
            console: Terminal status output (quiet if None)
            system_prompt: System instruction sent with every query
            preview_length: Characters of the response shown in logs
            hotkey_topic: Pub/sub topic to receive HotkeyEvents from
            session_topic: Pub/sub topic SessionEvents are published on
        """
        self.registry = registry
        self.capture = capture
        self.transcriber = transcriber
        self.output = output
        self.console = console or ClipsterConsole(quiet=True)
        self.system_prompt = system_prompt
        self.preview_length = preview_length
        self.hotkey_topic = hotkey_topic
        self.session_topic = session_topic

        self.lock = threading.Lock()
        self._state = SessionState.IDLE
        self.session: Optional[RecordingSession] = None
        self.last_result: Optional[PipelineResult] = None
        # Presses stamped before this moment arrived while a pipeline was running
        self._idle_since = 0.0

        self.event_queue: "queue.Queue[Optional[HotkeyEvent]]" = queue.Queue()
        self.worker_thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscribed = False

    @property
    def state(self) -> SessionState:
        with self.lock:
            return self._state

    @property
    def active_provider(self) -> Optional[str]:
        with self.lock:
            return self.session.provider_id if self.session else None

    # ─────────────────────────────────────────────────────────────────
    # Event intake
    # ─────────────────────────────────────────────────────────────────

    def subscribe(self) -> None:
        """Receive hotkey events from the pub/sub topic."""
        if not self._subscribed:
            pub.subscribe(self.submit, self.hotkey_topic)
            self._subscribed = True

    def submit(self, event: HotkeyEvent) -> None:
        """Queue a hotkey event. Safe to call from any thread."""
        self.event_queue.put(event)

    def start(self) -> None:
        """Start the worker thread that consumes queued events."""
        if self.worker_thread and self.worker_thread.is_alive():
            return
        self.worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self.worker_thread.name = "SessionControllerThread"
        self.worker_thread.start()
        logger.info("Session controller started")

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop the worker, release the microphone and close the event loop.

        If the worker is still running a pipeline when the timeout expires it
        is left to finish; it closes its own loop once it sees the sentinel.
        """
        if self._subscribed:
            try:
                pub.unsubscribe(self.submit, self.hotkey_topic)
            except Exception as e:
                logger.warning(f"Error during unsubscribe: {e}")
            self._subscribed = False

        if self.worker_thread and self.worker_thread.is_alive():
            self.event_queue.put(None)
            self.worker_thread.join(timeout)
            if self.worker_thread.is_alive():
                logger.warning("Session controller thread did not stop cleanly; "
                               "leaving the in-flight pipeline to finish")
                return

        if self.capture.is_recording:
            self.capture.stop()
        with self.lock:
            self._state = SessionState.IDLE
            self.session = None

        self._close_loop()
        logger.info("Session controller shut down")

    def _worker_loop(self) -> None:
        logger.debug("Session controller worker starting")
        asyncio.set_event_loop(self._get_loop())
        try:
            while True:
                event = self.event_queue.get()
                try:
                    if event is None:
                        logger.debug("Worker received sentinel, exiting.")
                        break
                    self.handle_event(event)
                except Exception as e:
                    logger.error(f"Unhandled exception while handling {event}: {e}", exc_info=True)
                finally:
                    self.event_queue.task_done()
        finally:
            self._close_loop()

    # ─────────────────────────────────────────────────────────────────
    # State machine
    # ─────────────────────────────────────────────────────────────────

    def handle_event(self, event: HotkeyEvent) -> Optional[PipelineResult]:
        """Apply one hotkey event to the state machine.

        Returns:
            The PipelineResult if the event finished a recording, else None
        """
        binding = self.registry.lookup(event.binding_id)
        if binding is None:
            logger.debug(f"Ignoring event for unbound hotkey id '{event.binding_id}'")
            return None

        if event.is_press:
            self._on_press(event, binding)
            return None
        return self._on_release(event, binding)

    def _on_press(self, event: HotkeyEvent, binding: ProviderBinding) -> None:
        # Only the worker mutates state; the lock guards readers on other threads
        with self.lock:
            recording = self._state is SessionState.RECORDING
            active = self.session.provider_id if self.session else None
            stale = event.timestamp < self._idle_since

        if recording:
            logger.warning(f"Ignoring press for {binding.name}: already recording for '{active}'")
            self._publish("ignored", binding.provider_id, reason="already_recording", active=active)
            return
        if stale:
            logger.info(f"Dropping press for {binding.name} that arrived while a response was processing")
            self._publish("ignored", binding.provider_id, reason="pipeline_busy")
            return

        try:
            info = self.capture.start()
        except CaptureError as e:
            logger.error(f"[capture] Could not start recording for {binding.name}: {e}")
            self.console.error("capture", str(e))
            self.output.notify(f"AI Assistant ({binding.name})", f"Microphone unavailable: {e}")
            self._publish("failed", binding.provider_id, stage="capture", error=str(e))
            return

        with self.lock:
            self.session = RecordingSession(provider_id=binding.provider_id)
            self._state = SessionState.RECORDING

        logger.info(f"Recording for {binding.name} ({info.sample_rate}Hz, {info.channels}ch, {info.encoding})")
        self.console.recording(binding)
        self._publish("started", binding.provider_id, sample_rate=info.sample_rate)

    def _on_release(self, event: HotkeyEvent, binding: ProviderBinding) -> Optional[PipelineResult]:
        with self.lock:
            if self._state is SessionState.IDLE or self.session is None:
                logger.debug(f"Ignoring release for {binding.name}: no active recording")
                return None
            if self.session.provider_id != binding.provider_id:
                logger.debug(f"Ignoring release for {binding.name}: recording belongs to "
                             f"'{self.session.provider_id}'")
                return None

        self.console.processing(binding)
        result: Optional[PipelineResult] = None
        try:
            result = self._get_loop().run_until_complete(self.run_pipeline(binding))
        finally:
            with self.lock:
                self.session = None
                self._state = SessionState.IDLE
                self._idle_since = time.monotonic()
            if result is not None:
                self.last_result = result
                self._publish_result(result)
        return result

    # ─────────────────────────────────────────────────────────────────
    # Post-capture pipeline
    # ─────────────────────────────────────────────────────────────────

    async def run_pipeline(self, binding: ProviderBinding) -> PipelineResult:
        """Stop capture and take the recording through to the clipboard.

        Every failure ends this run only and is reported in the result.
        """
        start_time = time.time()
        result = PipelineResult(provider_id=binding.provider_id, status=PipelineStatus.FAILED)
        stage = "capture"
        try:
            captured = self.capture.stop()
            if captured.is_empty:
                logger.info(f"No audio captured for {binding.name} - nothing to process")
                result.status = PipelineStatus.EMPTY_AUDIO
                return result

            loop = asyncio.get_running_loop()

            stage = "resample"
            resampled = await loop.run_in_executor(
                None, resample_to_16khz, captured.samples, captured.sample_rate)
            normalized = normalize_audio(resampled)

            stage = "transcribe"
            transcription = await loop.run_in_executor(None, self.transcriber.transcribe, normalized)
            transcript = transcription.text.strip()
            result.transcript = transcript
            if not transcript:
                logger.info("No speech detected in recording")
                self.console.notice("No speech detected")
                self.output.notify(f"AI Assistant ({binding.name})", "No speech detected.")
                result.status = PipelineStatus.NO_SPEECH
                return result
            logger.info(f"You said: {transcript}")
            self.console.transcript(transcript)

            stage = "chat"
            response = await binding.backend.chat(build_messages(transcript, self.system_prompt))
            result.response = response
            cleaned = clean_response(response)
            result.cleaned_response = cleaned

            stage = "publish"
            self.output.set_text(cleaned)
            self.output.notify(f"AI Assistant ({binding.name})", "Response copied! Ready to paste.")

            response_preview = preview(cleaned, self.preview_length)
            logger.info(f"Copied to clipboard via {binding.name}. Preview: {response_preview}")
            self.console.copied(binding, response_preview)
            result.status = PipelineStatus.COMPLETED

        except ClipsterError as e:
            result.error_stage = stage
            result.error = str(e)
            logger.error(f"[{stage}] {e.__class__.__name__} for {binding.name}: {e}")
            self.console.error(stage, str(e))
        except Exception as e:
            result.error_stage = stage
            result.error = str(e)
            logger.error(f"[{stage}] Unexpected error for {binding.name}: {e}", exc_info=True)
            self.console.error(stage, str(e))
        finally:
            result.duration_seconds = time.time() - start_time

        return result

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    def _close_loop(self) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.run_until_complete(self._loop.shutdown_default_executor())
            self._loop.close()
        self._loop = None

    def _publish_result(self, result: PipelineResult) -> None:
        if result.status is PipelineStatus.COMPLETED:
            event_type = "completed"
        elif result.status is PipelineStatus.FAILED:
            event_type = "failed"
        else:
            event_type = "skipped"
        self._publish(event_type, result.provider_id,
                      status=result.status.value,
                      stage=result.error_stage,
                      error=result.error,
                      duration_seconds=result.duration_seconds)

    def _publish(self, event_type: str, provider_id: Optional[str], **metadata) -> None:
        event = SessionEvent(event_type=event_type, provider_id=provider_id, metadata=metadata)
        try:
            pub.sendMessage(self.session_topic, event=event)
        except Exception as e:
            logger.error(f"Error publishing session event '{event_type}': {e}")
