"""
Test del logging strutturato JSON.
"""
import json
import logging

from riconcilia.core.logging_config import (
    ImportLoggerAdapter,
    JSONFormatter,
    clear_import_id,
    get_import_id,
    set_import_id,
    setup_logging,
)


def _record(msg="hello", **fields):
    record = logging.LogRecord("riconcilia.test", logging.INFO, __file__, 10, msg, None, None)
    if fields:
        record.extra_fields = fields
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "riconcilia.test"

    def test_extra_fields_merged(self):
        data = json.loads(JSONFormatter().format(_record(rows=3, bank_format="ABSA")))
        assert data["rows"] == 3
        assert data["bank_format"] == "ABSA"

    def test_import_id_stamped(self):
        set_import_id("abc123")
        try:
            data = json.loads(JSONFormatter().format(_record()))
            assert data["import_id"] == "abc123"
        finally:
            clear_import_id()
        assert get_import_id() == "GLOBAL"


class TestAdapter:

    def test_keywords_become_fields(self):
        adapter = ImportLoggerAdapter(logging.getLogger("x"), {})
        msg, kwargs = adapter.process("m", {"rows": 3, "exc_info": False})
        assert kwargs["extra"]["extra_fields"] == {"rows": 3}
        assert kwargs["exc_info"] is False

    def test_generated_import_id(self):
        generated = set_import_id()
        try:
            assert len(generated) == 12
            assert get_import_id() == generated
        finally:
            clear_import_id()


class TestSetupLogging:

    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "logs" / "import.log"
        root = logging.getLogger()
        saved = list(root.handlers), root.level
        try:
            setup_logging(logging.INFO, str(log_file))
            logging.getLogger("riconcilia.test").info("scritto")
            for h in root.handlers:
                h.flush()
            line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
            assert json.loads(line)["message"] == "scritto"
        finally:
            for h in root.handlers:
                h.close()
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
