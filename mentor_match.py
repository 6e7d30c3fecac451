"""
mentor_match.py

Score mentees against mentors and keep booking records tidy.

Commands:
  rank                 Score every mentee against every mentor. Writes the full
                       score table and the top-k mentors per mentee.
  daily-status-update  Mark yesterday's confirmed/pending/rescheduled bookings
                       as completed.
  refresh              Rescore each mentee against mentors updated since its
                       LastPaired time and write the stored rankings back.

Usage:
  python mentor_match.py rank --mentees mentees.csv --mentors mentors.csv --outdir out
  python mentor_match.py --sheet-id <id> --creds service_account.json rank --weights preference
  python mentor_match.py --sheet-id <id> --creds service_account.json daily-status-update --dry-run
  python mentor_match.py --sheet-id <id> --creds service_account.json refresh --mentee <UserID>

Settings not given on the command line are read from .env (see config.py).
"""

import argparse
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from time import time
from typing import Dict, List, Optional, Sequence

import pandas as pd

import config
from bookings import mark_completed, yesterday_window
from logger import setup_logging
from match_scorer import MatchResult, MatchScorer, Profile, shared_tags
from semantic_scorer import SemanticScorer
from sheet_helper import profiles_from_frame, read_records, write_google_sheet

log = logging.getLogger(__name__)

SCORE_COLUMNS = ["Mentee", "Mentor", "Score", "Shared Tags"]


def _result_row(mentee: Profile, mentor: Profile, result: MatchResult) -> Dict:
    return {
        "Mentee": mentee.id,
        "Mentor": mentor.id,
        "Score": result.total,
        "Shared Tags": ", ".join(shared_tags(mentee, mentor)),
        **{f"BRK::{k}": v for k, v in result.contributions().items()},
    }


# Build match table
def build_match_table(mentees: Sequence[Profile], mentors: Sequence[Profile], scorer: MatchScorer) -> pd.DataFrame:
    """One row per (mentee, mentor) pair, mentees in input order, mentors in rank order."""
    rows = []
    for mentee in mentees:
        for mentor, result in scorer.rank_pairs(mentee, mentors):
            rows.append(_result_row(mentee, mentor, result))
    if not rows:
        return pd.DataFrame(columns=SCORE_COLUMNS)
    return pd.DataFrame(rows)


def top_k_per_mentee(scores_df: pd.DataFrame, k: int) -> pd.DataFrame:
    if scores_df.empty:
        return scores_df.copy()
    return scores_df.groupby("Mentee", sort=False).head(k).reset_index(drop=True)


def mentors_updated_since(mentors: Sequence[Profile], last_paired: Optional[pd.Timestamp]) -> List[Profile]:
    """Mentors whose record changed strictly after ``last_paired`` (all of them when None)."""
    if last_paired is None:
        return list(mentors)
    return [m for m in mentors if m.updated_at is not None and m.updated_at > last_paired]


@dataclass
class RankingRefresh:
    mentee_id: str
    to_create: List[Dict] = field(default_factory=list)
    to_update: List[Dict] = field(default_factory=list)
    last_paired: Optional[pd.Timestamp] = None

    @property
    def total(self) -> int:
        return len(self.to_create) + len(self.to_update)


def refresh_rankings(
    mentee: Profile,
    mentors: Sequence[Profile],
    existing: pd.DataFrame,
    scorer: Optional[MatchScorer] = None,
    last_paired: Optional[pd.Timestamp] = None,
    now: Optional[pd.Timestamp] = None,
) -> RankingRefresh:
    """
    Rescore one mentee against the mentors updated since it was last paired.

    Scores use ``config.REFRESH_WEIGHTS`` unless another scorer is given and
    are stored as integers (0-100, halves round up). ``existing`` holds the
    ranking rows already stored (columns MenteeID, MentorID). Zero scores are
    dropped. Mentors already ranked for the mentee go to ``to_update``, the
    rest to ``to_create``. ``last_paired`` on the result is bumped to ``now``
    so the next run stays incremental; a mentee without tags is skipped and
    keeps its old ``last_paired``.
    """
    if not mentee.tags:
        log.info("Mentee %s has no tags; nothing to refresh", mentee.id)
        return RankingRefresh(mentee_id=mentee.id, last_paired=last_paired)

    scorer = scorer if scorer is not None else MatchScorer(config.REFRESH_WEIGHTS)
    now = now if now is not None else pd.Timestamp.now(tz="UTC")
    candidates = mentors_updated_since(mentors, last_paired)

    ranked = set()
    if not existing.empty and {"MenteeID", "MentorID"} <= set(existing.columns):
        mine = existing[existing["MenteeID"].astype(str) == mentee.id]
        ranked = set(mine["MentorID"].astype(str))

    refresh = RankingRefresh(mentee_id=mentee.id, last_paired=now)
    for result in scorer.rank(mentee, candidates):
        stored = int(math.floor(result.total + 0.5))
        if stored <= 0:
            continue
        row = {"MenteeID": mentee.id, "MentorID": result.mentor_id, "Score": stored}
        if result.mentor_id in ranked:
            refresh.to_update.append(row)
        else:
            refresh.to_create.append(row)
    log.info("Refreshed rankings for mentee %s: %d created, %d updated",
             mentee.id, len(refresh.to_create), len(refresh.to_update))
    return refresh


RANKING_COLUMNS = ["MenteeID", "MentorID", "Score"]


def apply_refresh(rankings: pd.DataFrame, refresh: RankingRefresh) -> pd.DataFrame:
    """Return ``rankings`` with the refresh's updated scores set and new rows appended."""
    out = rankings.copy()
    for col in RANKING_COLUMNS:
        if col not in out.columns:
            out[col] = pd.Series(dtype=object)
    mentee_ids = out["MenteeID"].astype(str)
    mentor_ids = out["MentorID"].astype(str)
    for row in refresh.to_update:
        mask = (mentee_ids == row["MenteeID"]) & (mentor_ids == row["MentorID"])
        out.loc[mask, "Score"] = row["Score"]
    if refresh.to_create:
        out = pd.concat([out, pd.DataFrame(refresh.to_create)], ignore_index=True)
    return out


def set_last_paired(mentees_df: pd.DataFrame, mentee_id: str, when: pd.Timestamp) -> pd.DataFrame:
    out = mentees_df.copy()
    if "LastPaired" not in out.columns:
        out["LastPaired"] = ""
    out["LastPaired"] = out["LastPaired"].astype(object)
    out.loc[out["UserID"].astype(str) == mentee_id, "LastPaired"] = when.isoformat()
    return out


# Write analysis tables
def write_score_tables(scores_df: pd.DataFrame, out_dir: Path, topk: int) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)

    full_scores_path = out_dir / "mentor_match_full_scores.csv"
    scores_df.to_csv(full_scores_path, index=False)

    topk_path = out_dir / f"mentor_match_top{topk}_per_mentee.csv"
    top_k_per_mentee(scores_df, topk).to_csv(topk_path, index=False)

    return [full_scores_path, topk_path]


def make_scorer(
    weights: str = "default",
    semantic: str = "off",
    semantic_weight: float = 0.0,
    embed_model: str = config.EMBED_MODEL,
) -> MatchScorer:
    if weights not in config.WEIGHT_PRESETS:
        raise SystemExit(f"Unknown weight preset {weights!r}; choose from {sorted(config.WEIGHT_PRESETS)}")
    preset = dict(config.WEIGHT_PRESETS[weights])
    sem = None
    if semantic == "embed":
        sem = SemanticScorer(mode="embed", model_name=embed_model)
        if semantic_weight > 0:
            preset["bio_semantic"] = semantic_weight
    return MatchScorer(preset, semantic=sem)


def _load(args, csv_path: Optional[str], worksheet: str) -> pd.DataFrame:
    # an explicit CSV wins over the sheet configured in .env
    if csv_path:
        return read_records(csv_path=csv_path)
    return read_records(sheet_id=args.sheet_id, creds_json=args.creds, worksheet_name=worksheet)


def run_rank(args) -> int:
    start_time = time()

    mentees_df = _load(args, args.mentees, args.mentees_worksheet)
    mentors_df = _load(args, args.mentors, args.mentors_worksheet)

    mentees = profiles_from_frame(mentees_df)
    mentors = profiles_from_frame(mentors_df)

    scorer = make_scorer(args.weights, args.semantic, args.semantic_weight)
    if args.semantic == "embed" and "bio_semantic" not in scorer.weights:
        log.warning("Semantic mode is on but bio_semantic has no weight; pass --semantic-weight")

    scores_df = build_match_table(mentees, mentors, scorer)
    paths = write_score_tables(scores_df, Path(args.outdir), args.topk)

    print('[OK] Wrote:')
    for path in paths:
        print(f' - {path}')
    print(f'[INFO] Mentors: {len(mentors)}, Mentees: {len(mentees)}, Scored pairs: {len(scores_df)}')
    print(f'[INFO] Time elapsed: {time() - start_time:.2f} seconds')
    return 0


def run_daily_status_update(args) -> int:
    if not args.sheet_id or not args.creds:
        raise SystemExit('daily-status-update needs SHEET_ID and GCRED_PATH')

    bookings_df = read_records(sheet_id=args.sheet_id, creds_json=args.creds, worksheet_name=args.worksheet)
    window = yesterday_window(tz=args.timezone)
    log.info("Looking for meetings from %s to %s", window[0].isoformat(), window[1].isoformat())

    updated, completed = mark_completed(bookings_df, window)
    if not completed:
        print('[INFO] No bookings to update')
        return 0

    if args.dry_run:
        print(f'[INFO] Dry run: {len(completed)} bookings would be marked Completed')
    else:
        write_google_sheet(updated, args.sheet_id, args.creds, args.worksheet)
        print(f'[OK] Marked {len(completed)} bookings as Completed')
    for booking_id in completed:
        print(f' - {booking_id}')
    return 0


def run_refresh(args) -> int:
    if not args.sheet_id or not args.creds:
        raise SystemExit('refresh needs SHEET_ID and GCRED_PATH')

    def load(worksheet):
        return read_records(sheet_id=args.sheet_id, creds_json=args.creds, worksheet_name=worksheet)

    mentees_df = load(args.mentees_worksheet)
    mentors = profiles_from_frame(load(args.mentors_worksheet))
    rankings = load(args.rankings_worksheet)

    mentees = profiles_from_frame(mentees_df)
    if args.mentee:
        mentees = [m for m in mentees if m.id == args.mentee]
        if not mentees:
            raise SystemExit(f'Mentee {args.mentee!r} not found')

    scorer = MatchScorer(config.REFRESH_WEIGHTS)
    created = updated = 0
    for mentee in mentees:
        refresh = refresh_rankings(mentee, mentors, rankings, scorer, last_paired=mentee.last_paired)
        rankings = apply_refresh(rankings, refresh)
        created += len(refresh.to_create)
        updated += len(refresh.to_update)
        if refresh.last_paired is not None and refresh.last_paired != mentee.last_paired:
            mentees_df = set_last_paired(mentees_df, mentee.id, refresh.last_paired)

    if args.dry_run:
        print(f'[INFO] Dry run: {created} rankings would be created, {updated} updated')
        return 0

    write_google_sheet(rankings, args.sheet_id, args.creds, args.rankings_worksheet)
    write_google_sheet(mentees_df, args.sheet_id, args.creds, args.mentees_worksheet)
    print(f'[OK] Rankings refreshed for {len(mentees)} mentees: {created} created, {updated} updated')
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mentor-match", description="Mentor/mentee matching tools")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    parser.add_argument("--log-dir", type=Path, default=None, help="Also write logs to this directory")
    parser.add_argument("--sheet-id", default=config.SHEET_ID)
    parser.add_argument("--creds", default=config.GCRED_PATH, help="Service account JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    rank_p = sub.add_parser("rank", help="Score mentees against mentors")
    rank_p.add_argument("--mentees", help="Mentee records CSV")
    rank_p.add_argument("--mentors", help="Mentor records CSV")
    rank_p.add_argument("--mentees-worksheet", default=config.MENTEES_WORKSHEET)
    rank_p.add_argument("--mentors-worksheet", default=config.MENTORS_WORKSHEET)
    rank_p.add_argument("--outdir", default="out")
    rank_p.add_argument("--topk", type=int, default=3)
    rank_p.add_argument("--weights", default="default", choices=sorted(config.WEIGHT_PRESETS))
    rank_p.add_argument("--semantic", default="off", choices=["off", "embed"])
    rank_p.add_argument("--semantic-weight", type=float, default=0.0, help="Weight of the bio similarity term")
    rank_p.set_defaults(func=run_rank)

    daily_p = sub.add_parser("daily-status-update", help="Complete yesterday's bookings")
    daily_p.add_argument("--worksheet", default=config.BOOKINGS_WORKSHEET)
    daily_p.add_argument("--timezone", default=config.BOOKING_TIMEZONE)
    daily_p.add_argument("--dry-run", action="store_true")
    daily_p.set_defaults(func=run_daily_status_update)

    refresh_p = sub.add_parser("refresh", help="Update stored rankings for mentors changed since the last pairing")
    refresh_p.add_argument("--mentee", help="Only refresh this mentee (UserID)")
    refresh_p.add_argument("--mentees-worksheet", default=config.MENTEES_WORKSHEET)
    refresh_p.add_argument("--mentors-worksheet", default=config.MENTORS_WORKSHEET)
    refresh_p.add_argument("--rankings-worksheet", default=config.RANKINGS_WORKSHEET)
    refresh_p.add_argument("--dry-run", action="store_true")
    refresh_p.set_defaults(func=run_refresh)

    return parser


# Main CLI
def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_dir)
    return args.func(args)


if __name__ == '__main__':
    raise SystemExit(main())
