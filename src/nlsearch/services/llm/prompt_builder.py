from dataclasses import dataclass
from typing import Dict, List

SYSTEM_TEMPLATE = """You are a text-to-SQL converter for the PostgreSQL database described below.
Rules:
- Write PostgreSQL SQL.
- Table and column names are case-sensitive: always wrap them in double quotes exactly as written in the schema (e.g. SELECT "PartName" FROM "PartsInfo").
- Translate the user's request into exactly one SQL statement.
- Return only SQL, no explanation, no comments, no code fences.
- Use only the tables and columns listed in the schema (do not guess).
- Write SQL keywords in uppercase.
- If the request cannot be answered from this schema, reply with a short sentence saying so instead of SQL.

Schema:
{schema_text}
"""


@dataclass(frozen=True)
class PromptMessages:
    system_message: str
    user_message: str

    def as_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_message},
            {"role": "user", "content": self.user_message},
        ]


def build_prompt(schema_text: str, user_query: str) -> PromptMessages:
    # 사용자 질의는 SQL로 실행되지 않으므로 이스케이프 없이 그대로 전달
    return PromptMessages(
        system_message=SYSTEM_TEMPLATE.format(schema_text=schema_text),
        user_message=user_query,
    )
