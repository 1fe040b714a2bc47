"""Unit tests for the structured error catalog."""

import pytest

from pagebinder.errors import (
    BuildFailedError,
    MergeFailedError,
    NoSourcesProvidedError,
    OCRServiceError,
    PageBinderError,
    ProjectNotFoundError,
    ShareUnavailableError,
    SourcePathTraversalError,
    SourceTooLargeError,
    SourceUnavailableError,
    StorageFailureError,
    UnsupportedFormatError,
    ValidationError,
)

ERROR_CLASSES = [
    ValidationError, SourceUnavailableError, SourceTooLargeError,
    SourcePathTraversalError, UnsupportedFormatError, BuildFailedError,
    NoSourcesProvidedError, MergeFailedError, ShareUnavailableError,
    StorageFailureError, ProjectNotFoundError, OCRServiceError,
]


class TestErrorCatalog:
    def test_base_error(self):
        e = PageBinderError(code="TEST", message="test msg", suggestion="try this")
        d = e.to_dict()
        assert d["error_code"] == "TEST"
        assert d["message"] == "test msg"
        assert d["suggestion"] == "try this"
        assert "detail" not in d

    def test_validation_error(self):
        e = ValidationError(errors=["quality: too high"])
        assert e.code == "VALIDATION_FAILED"
        assert e.to_dict()["detail"] == ["quality: too high"]

    def test_source_unavailable(self):
        e = SourceUnavailableError("/tmp/a.png", "No such file")
        assert e.code == "SOURCE_UNAVAILABLE"
        assert "a.png" in e.message
        assert "No such file" in e.message

    def test_source_too_large(self):
        e = SourceTooLargeError("big.png", 15.0, 10.0)
        assert e.code == "SOURCE_TOO_LARGE"
        assert "10MB" in e.message

    def test_unsupported_format(self):
        e = UnsupportedFormatError("notes.txt", "cannot identify image file")
        assert e.code == "UNSUPPORTED_FORMAT"
        assert e.detail == "cannot identify image file"

    def test_build_failed_keeps_step_and_cause(self):
        cause = RuntimeError("disk full")
        try:
            try:
                raise cause
            except RuntimeError as exc:
                raise BuildFailedError("serialize", str(exc)) from exc
        except BuildFailedError as e:
            assert e.step == "serialize"
            assert e.__cause__ is cause
            assert e.to_dict()["detail"] == {"step": "serialize"}

    def test_no_sources(self):
        assert NoSourcesProvidedError().code == "NO_SOURCES_PROVIDED"

    def test_merge_failed(self):
        e = MergeFailedError("nothing parsed", [1, 2])
        assert e.detail == {"skipped_sources": [1, 2]}

    def test_share_unavailable(self):
        assert ShareUnavailableError().code == "SHARE_UNAVAILABLE"

    def test_storage_failure(self):
        e = StorageFailureError("persist", "/out/a.pdf", "Permission denied")
        assert e.operation == "persist"
        assert "Permission denied" in e.message

    def test_project_not_found(self):
        assert "project_x" in ProjectNotFoundError("project_x").message

    def test_ocr_error(self):
        assert OCRServiceError("HTTP 500", status=500).detail == {"status": 500}

    @pytest.mark.parametrize("cls", ERROR_CLASSES)
    def test_all_errors_are_catalog_errors(self, cls):
        assert issubclass(cls, PageBinderError)
        assert issubclass(cls, Exception)

    def test_codes_are_unique(self):
        samples = [
            ValidationError(["x"]), SourceUnavailableError("s"), SourceTooLargeError("s", 2, 1),
            SourcePathTraversalError("s"), UnsupportedFormatError("s"), BuildFailedError("x", "y"),
            NoSourcesProvidedError(), MergeFailedError("m"), ShareUnavailableError(),
            StorageFailureError("op", "t"), ProjectNotFoundError("p"), OCRServiceError("o"),
        ]
        codes = [e.code for e in samples]
        assert len(set(codes)) == len(ERROR_CLASSES)
