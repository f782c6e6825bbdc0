"""Test helpers for building fake upstream responses."""

import json

SAMPLE_OUTLINE_TEXT = """\
# 逆天剑尊

## 简介
少年林凡意外获得上古传承，从此踏上逆天之路。

## 第一章 废柴少年
### 章节简介
林凡在家族大比中受尽嘲讽。
深夜他在后山捡到一枚古戒。

## 第二章 古戒之秘
### 章节简介
古戒中的残魂苏醒，传授剑诀。

## 第三章 一鸣惊人
### 章节简介
林凡在宗门考核中一剑击败天才。
"""


def sse_body(*payloads) -> bytes:
    """Encode SSE events; dicts become JSON, strings are sent verbatim."""
    events = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        events.append(f"data: {data}\n\n")
    return "".join(events).encode("utf-8")


def delta(text: str) -> dict:
    return {"choices": [{"delta": {"content": text}}]}


def envelope(data=None, status: int = 0, msg: str = "") -> dict:
    """Upstream JSON envelope."""
    return {"status": status, "msg": msg, "data": data}
