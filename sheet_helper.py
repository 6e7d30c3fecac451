import logging
import re
from typing import Any, List, Optional

import gspread
import pandas as pd
from google.oauth2.service_account import Credentials

from config import MAX_TAGS
from match_scorer import Profile
from retry import with_retry

log = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/spreadsheets', 'https://www.googleapis.com/auth/drive']

# Record-store field names -> canonical column names
RENAME_MAP = {
    "UserID": "id",
    "Name": "name",
    "Tags": "tags",
    "Industry": "industry",
    "CurrentIndustry": "industry",
    "CurrentRole": "current_role",
    "SeniorityLevel": "seniority",
    "PreviousRoles": "previous_roles",
    "YearExp": "years_experience",
    "YearsExperience": "years_experience",
    "MentoringStyle": "mentoring_style",
    "CulturalBackground": "cultural_background",
    "CultureBackground": "cultural_background",
    "Availability": "availability",
    "Bio": "bio",
    "UpdatedAt": "updated_at",
    "LastPaired": "last_paired",
}

TAG_LABEL_KEYS = ("name", "label", "value", "title", "text")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return False
    return bool(pd.isna(value))


def normalize_responses(df: pd.DataFrame) -> pd.DataFrame:
    """Rename record-store columns to canonical names; the first source column wins."""
    rename = {}
    taken = set(df.columns)
    for col in df.columns:
        target = RENAME_MAP.get(col)
        if target and target not in taken and target not in rename.values():
            rename[col] = target
    return df.rename(columns=rename)


def _flatten(raw: Any) -> List[Any]:
    if isinstance(raw, (list, tuple, set)):
        out = []
        for item in raw:
            out.extend(_flatten(item))
        return out
    return [raw]


def _tag_label(item: Any) -> str:
    if isinstance(item, dict):
        for key in TAG_LABEL_KEYS:
            if item.get(key):
                return str(item[key])
        fields = item.get("fields")
        if isinstance(fields, dict):
            for key in ("name", "Name", "Title"):
                if fields.get(key):
                    return str(fields[key])
        return ""
    if _is_blank(item):
        return ""
    return str(item)


def normalize_tags(raw: Any, limit: int = MAX_TAGS) -> List[str]:
    """
    Turn a loosely typed tags cell into a clean list of labels.

    Accepts None, a comma/semicolon separated string, nested lists, or
    dicts carrying a name/label/value/title/text. Labels are trimmed and
    deduplicated case-insensitively (first spelling wins). Never raises.
    """
    labels: List[str] = []
    seen = set()
    for item in _flatten(raw):
        for label in re.split(r"[,;]+", _tag_label(item)):
            label = label.strip()
            if not label or label.lower() in seen:
                continue
            seen.add(label.lower())
            labels.append(label)
    return labels[:limit]


def clean_text(raw: Any) -> Optional[str]:
    """Collapse whitespace and stray commas; blanks become None."""
    if _is_blank(raw) or isinstance(raw, (list, dict)):
        return None
    text = re.sub(r"\s+", " ", str(raw))
    text = re.sub(r"\s*,(\s*,)+\s*", ", ", text)
    text = re.sub(r",\s*$", "", text).strip()
    return text or None


def parse_years(raw: Any) -> Optional[int]:
    if _is_blank(raw) or isinstance(raw, bool):
        return None
    try:
        years = int(float(str(raw).strip()))
    except (TypeError, ValueError, OverflowError):
        return None
    return years if years >= 0 else None


def parse_timestamp(raw: Any) -> Optional[pd.Timestamp]:
    """Parse to a UTC timestamp; naive values are taken as UTC."""
    if _is_blank(raw):
        return None
    try:
        ts = pd.Timestamp(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def _text_or_list(raw: Any) -> Optional[str]:
    # multi-select cells arrive as lists
    if isinstance(raw, (list, tuple)):
        return clean_text(", ".join(str(v) for v in _flatten(raw) if not _is_blank(v)))
    return clean_text(raw)


def row_to_profile(row) -> Optional[Profile]:
    """Build a Profile from a normalized record; None when the record has no id."""
    profile_id = clean_text(row.get("id"))
    if profile_id is None:
        return None
    return Profile(
        id=profile_id,
        tags=frozenset(normalize_tags(row.get("tags"))),
        name=clean_text(row.get("name")),
        industry=clean_text(row.get("industry")),
        current_role=clean_text(row.get("current_role")),
        seniority=clean_text(row.get("seniority")),
        previous_roles=_text_or_list(row.get("previous_roles")),
        years_experience=parse_years(row.get("years_experience")),
        mentoring_style=_text_or_list(row.get("mentoring_style")),
        cultural_background=clean_text(row.get("cultural_background")),
        availability=_text_or_list(row.get("availability")),
        bio=clean_text(row.get("bio")),
        updated_at=parse_timestamp(row.get("updated_at")),
        last_paired=parse_timestamp(row.get("last_paired")),
    )


def profiles_from_frame(df: pd.DataFrame) -> List[Profile]:
    profiles = []
    df = normalize_responses(df)
    for idx, row in df.iterrows():
        profile = row_to_profile(row.to_dict())
        if profile is None:
            log.warning("Skipping record %s: missing UserID", idx)
            continue
        profiles.append(profile)
    return profiles


def _open_sheet(sheet_id: str, creds_json: str):
    creds = Credentials.from_service_account_file(creds_json, scopes=SCOPES)
    client = gspread.authorize(creds)
    return client.open_by_key(sheet_id)


# Google Sheets import helper
def read_google_sheet(sheet_id: str, creds_json: str, worksheet_name: Optional[str] = None) -> pd.DataFrame:
    sh = with_retry(f"Open sheet {sheet_id}")(_open_sheet)(sheet_id, creds_json)

    # If no worksheet name is provided, use the first worksheet with data
    if worksheet_name is None:
        for ws in sh.worksheets():
            data = with_retry(f"Select {ws.title}")(ws.get_all_records)()
            if data:
                log.info("Reading from worksheet: '%s'", ws.title)
                return pd.DataFrame(data)
        log.warning("No worksheets contain data. Using first sheet: '%s'", sh.sheet1.title)
        ws = sh.sheet1
    else:
        ws = sh.worksheet(worksheet_name)
        log.info("Reading from worksheet: '%s'", worksheet_name)

    data = with_retry(f"Select {ws.title}")(ws.get_all_records)()
    return pd.DataFrame(data)


def write_google_sheet(df: pd.DataFrame, sheet_id: str, creds_json: str, worksheet_name: str) -> None:
    """Replace the worksheet contents with ``df`` (header row included)."""
    sh = with_retry(f"Open sheet {sheet_id}")(_open_sheet)(sheet_id, creds_json)
    ws = sh.worksheet(worksheet_name)
    values = [list(df.columns)] + df.astype(object).where(df.notna(), "").astype(str).values.tolist()
    with_retry(f"Clear {worksheet_name}")(ws.clear)()
    with_retry(f"Update {worksheet_name}")(ws.update)(values=values, range_name="A1")
    log.info("Wrote %d rows to worksheet '%s'", len(df), worksheet_name)


def read_records(
    csv_path: Optional[str] = None,
    sheet_id: Optional[str] = None,
    creds_json: Optional[str] = None,
    worksheet_name: Optional[str] = None,
) -> pd.DataFrame:
    """Load a record table from a Google Sheet (preferred) or a CSV file."""
    if sheet_id:
        if not creds_json:
            raise SystemExit('When using a sheet id you must provide GCRED_PATH to service account JSON')
        df = read_google_sheet(sheet_id, creds_json, worksheet_name)
        log.info("Loaded %d rows from Google Sheet %s", len(df), sheet_id)
        return df
    if csv_path:
        df = pd.read_csv(csv_path)
        log.info("Loaded CSV %s (%d rows)", csv_path, len(df))
        return df
    raise SystemExit('You must provide either a CSV path or SHEET_ID to load data')
