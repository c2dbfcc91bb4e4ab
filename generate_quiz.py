"""
Generate a quiz from a notes file without running the API.

USAGE:
    python generate_quiz.py --subject "Biology" --notes notes.txt --mcq 5 --tf 3 [--out quiz.json]

OPTIONS:
    --subject TEXT        Subject label used in prompts
    --notes FILE          Plain-text notes (at least 100 characters)
    --difficulty LEVEL    Easy | Medium | Hard (default Medium)
    --mcq/--tf/--matching/--essay N   Question counts per type
    --out FILE            Where to write the quiz file (default <subject>.json)
"""

from dotenv import load_dotenv
load_dotenv()

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from generation.orchestrator import GenerationFailedError, GenerationInputError, run_generation
from generation.schemas import Difficulty, QuestionCounts, QuizConfig
from quiz.session_file import export_filename, export_quiz, save_quiz_file
from quiz.state import INITIAL_STATE, SetConfig, SetQuestions, quiz_reducer


def _count(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError("must be 0 or more")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a quiz file from study notes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--subject", required=True, help="Subject label")
    parser.add_argument("--notes", required=True, type=Path, help="Notes text file")
    parser.add_argument(
        "--difficulty", default="Medium", choices=[d.value for d in Difficulty],
        help="Question difficulty",
    )
    parser.add_argument("--mcq", type=_count, default=0, help="Multiple choice questions")
    parser.add_argument("--tf", type=_count, default=0, help="True/false questions")
    parser.add_argument("--matching", type=_count, default=0, help="Matching questions")
    parser.add_argument("--essay", type=_count, default=0, help="Essay questions")
    parser.add_argument("--out", type=Path, help="Output quiz file")
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")

    try:
        notes = args.notes.read_text(encoding="utf-8")
    except OSError as e:
        print(f"❌ Cannot read notes: {e}")
        return 1

    config = QuizConfig(
        subject=args.subject,
        difficulty=Difficulty(args.difficulty),
        notes=notes,
        question_counts=QuestionCounts(
            MCQ=args.mcq, TF=args.tf, MATCHING=args.matching, ESSAY=args.essay
        ),
    )

    try:
        result = await run_generation(config)
    except GenerationInputError as e:
        print(f"❌ {e}")
        return 2
    except GenerationFailedError as e:
        print(f"❌ {e}")
        for detail in e.details:
            print(f"   - {detail}")
        return 1

    state = quiz_reducer(INITIAL_STATE, SetConfig(config=config))
    state = quiz_reducer(state, SetQuestions(questions=result.questions))
    try:
        out = save_quiz_file(args.out or Path(export_filename(state)), export_quiz(state))
    except OSError as e:
        print(f"❌ Cannot write quiz file: {e}")
        return 1

    print(f"✅ Generated {result.generated}/{result.requested} questions → {out}")
    for warning in result.warnings or []:
        print(f"   ⚠ {warning}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
