import json
import logging
import pathlib

from .observation import OutputRecord

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = pathlib.Path("data") / "data.json"


def write_output_record(record: OutputRecord, output_path: pathlib.Path = DEFAULT_OUTPUT_PATH) -> pathlib.Path:
    """
    Write `record` as two-space indented JSON with a trailing newline,
    creating the parent directory and overwriting any existing file.

    Raises ValueError for a non-finite population before touching the file.
    """
    output_path = pathlib.Path(output_path)
    text = json.dumps(record.to_dict(), indent=2, allow_nan=False) + "\n"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as out_f:
        out_f.write(text)
    logger.info(f"Wrote {output_path}")
    return output_path
