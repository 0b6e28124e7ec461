from riprap.ingest.adapter_contract import FrontEnd, IngestBundle
from riprap.ingest.json_frontend import JsonFrontEnd, parse_payload, source_unit
from riprap.ingest.registry import FRONT_ENDS, FrontEndRegistry

__all__ = [
    "FRONT_ENDS",
    "FrontEnd",
    "FrontEndRegistry",
    "IngestBundle",
    "JsonFrontEnd",
    "parse_payload",
    "source_unit",
]
