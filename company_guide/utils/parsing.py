# company_guide/utils/parsing.py
# 表單字串 -> 資料庫欄位值 的轉換
import re
import unicodedata
from datetime import date
from typing import Optional


def parse_founded_year(value: Optional[str]) -> Optional[date]:
    """
    "1999" -> date(1999, 1, 1)，空值回傳 None
    """
    if not value:
        return None
    return date(int(value), 1, 1)


def parse_hourly_rate(value: Optional[str]) -> Optional[float]:
    """
    將本地格式的金額轉成 float。
    空白視為千分位 (移除)，逗號視為小數點: "1 234,56" -> 1234.56
    空值回傳 None
    """
    if not value:
        return None
    normalized = value.replace(" ", "").replace(",", ".")
    return float(normalized)


def slugify(value: str) -> str:
    """
    "Acme & Zonen B.V." -> "acme-zonen-b-v"
    """
    # 把重音字母轉成對應的 ASCII (é -> e)，其餘非 ASCII 字元捨棄
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value.lower())
    return value.strip("-")
