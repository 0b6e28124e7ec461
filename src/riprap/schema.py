from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel


class ParameterDTO(BaseModel):
    name: str
    callback: bool = False


class BodyNodeDTO(BaseModel):
    kind: str
    line: int
    checked: bool = True
    callee: Optional[str] = None
    children: List[BodyNodeDTO] = []


class FunctionDTO(BaseModel):
    name: str
    line: int = 1
    params: List[ParameterDTO] = []
    returns: str = "void"
    interop: bool = False
    protocol: Optional[str] = None
    structured: bool = False
    body: Optional[List[BodyNodeDTO]] = []


class CallSiteDTO(BaseModel):
    caller: str
    callee: Optional[str] = None
    target: str = ""
    line: int = 0


class SourceUnitDTO(BaseModel):
    path: str
    text: str = ""
    parse_error: Optional[str] = None
    functions: List[FunctionDTO] = []
    calls: List[CallSiteDTO] = []


class FrontEndPayload(BaseModel):
    version: Literal[1] = 1
    units: List[SourceUnitDTO] = []
    roots: List[str] = []
