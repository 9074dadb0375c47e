# Conversion session - intake list, converted list and run state for one user
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from services.archive_service import package_all
from services.batch_service import convert_batch
from services.errors import ConversionError, EmptyInputError
from services.models import (
    BatchPolicy, ConversionRequest, ConvertedFile, ProgressMode, SourceFile,
)
from services.progress import RunProgress

logger = logging.getLogger(__name__)

LayoutListener = Callable[[str], None]


class ConversionSession:
    """
    State owned by one caller between file selection and download.

    Listeners registered with subscribe() are told about every change that
    affects what an embedding page would render (files added or removed,
    new outputs, progress, error message).
    """

    def __init__(self, policy=BatchPolicy.FAIL_FAST, progress_mode=ProgressMode.COSMETIC,
                 max_workers: Optional[int] = None):
        self.policy = BatchPolicy(policy)
        self.max_workers = max_workers
        self.progress = RunProgress(progress_mode)
        self.progress.subscribe(lambda _value: self._notify("progress"))
        self.error_message = ""
        self.last_failures = []
        self._selected: List[SourceFile] = []
        self._converted: List[ConvertedFile] = []
        self._listeners: List[LayoutListener] = []

    def subscribe(self, listener: LayoutListener) -> None:
        self._listeners.append(listener)

    def _notify(self, reason: str) -> None:
        for listener in list(self._listeners):
            listener(reason)

    @property
    def selected_files(self) -> Tuple[SourceFile, ...]:
        return tuple(self._selected)

    @property
    def converted_files(self) -> Tuple[ConvertedFile, ...]:
        return tuple(self._converted)

    def add_files(self, files: Iterable[SourceFile]) -> None:
        self._selected.extend(files)
        self._notify("files-added")

    def remove_file(self, index: int) -> None:
        if 0 <= index < len(self._selected):
            del self._selected[index]
            self._notify("file-removed")

    def remove_converted(self, index: int) -> None:
        if 0 <= index < len(self._converted):
            del self._converted[index]
            self._notify("converted-removed")

    def dismiss_error(self) -> None:
        if self.error_message:
            self.error_message = ""
            self._notify("error-dismissed")

    def convert(self, request: ConversionRequest) -> Optional[List[ConvertedFile]]:
        """
        Convert the selected files and replace the converted list with the outputs.
        On failure the message is kept in error_message, progress goes back
        to 0 and the previous outputs stay as they were.
        """
        self.error_message = ""
        self.last_failures = []
        try:
            result = convert_batch(
                self._selected, request,
                policy=self.policy, progress=self.progress, max_workers=self.max_workers,
            )
        except ConversionError as e:
            logger.info("Session conversion failed: %s", e)
            self.progress.fail()
            self.error_message = f"Conversion failed: {e}"
            self._notify("error")
            return None

        if not result.files:
            # every file failed under the partial policy
            first = result.failures[0]
            self.progress.fail()
            self.last_failures = list(result.failures)
            self.error_message = f"Conversion failed: {first.filename}: {first.message}"
            self._notify("error")
            return None

        self._converted = list(result.files)
        self.last_failures = list(result.failures)
        self._notify("converted")
        return list(result.files)

    def package_all(self) -> bytes:
        if not self._converted:
            raise EmptyInputError("No converted files to download")
        return package_all(self._converted)
