"""
부품 카탈로그 스키마 설명
- 프롬프트에 그대로 들어가는 고정 텍스트
- 프로세스 시작 시 한 번 로드, 이후 변경 없음
"""
from pathlib import Path
from typing import Optional

from loguru import logger

from nlsearch.config import get_schema_file

DEFAULT_SCHEMA_TEXT = """\
Database: PostgreSQL store for a vehicle parts catalog.
Identifiers are mixed case and must be double-quoted (e.g. "PartsInfo"."PartName").

Table Makes
- MakeID INT PRIMARY KEY (identity)
- Name VARCHAR(100) NOT NULL, UNIQUE

Table Models
- ModelID INT PRIMARY KEY (identity)
- MakeID INT NOT NULL REFERENCES Makes(MakeID) ON DELETE RESTRICT
- Name VARCHAR(100) NOT NULL
- YearFrom SMALLINT NULL
- YearTo SMALLINT NULL
- BodyStyle VARCHAR(50) NULL
- UNIQUE (MakeID, Name, YearFrom, YearTo)

Table PartsInfo
- PartID INT PRIMARY KEY (identity)
- ModelID INT NOT NULL REFERENCES Models(ModelID) ON DELETE RESTRICT
- PartNumber VARCHAR(50) NOT NULL
- PartName VARCHAR(100) NOT NULL
- Description VARCHAR(500) NULL
- Category VARCHAR(50) NULL
- Price DECIMAL(10,2) NULL
- UNIQUE (ModelID, PartNumber)

Relationships: one Make has many Models; one Model has many PartsInfo rows.
"""


class SchemaUnavailable(RuntimeError):
    pass


class SchemaDescriptor:
    def __init__(self, text: str):
        self._text = text

    @classmethod
    def from_env(cls, path: Optional[str] = None) -> "SchemaDescriptor":
        """NL2SQL_SCHEMA_FILE가 있으면 파일에서, 없으면 기본 스키마 사용"""
        path = path or get_schema_file()
        if not path:
            return cls(DEFAULT_SCHEMA_TEXT)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaUnavailable(f"Schema file could not be read: {path} ({e})") from e
        if not text.strip():
            raise SchemaUnavailable(f"Schema file is empty: {path}")
        logger.info(f"Loaded schema description from {path} ({len(text)} chars)")
        return cls(text)

    def get_schema_text(self) -> str:
        return self._text
