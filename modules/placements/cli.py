"""Placement office CLI.

Usage:
    python cli.py placements init
    python cli.py placements import --data-dir data/
    python cli.py placements apply U2310001A 3
    python cli.py placements decide rep@acme.com 12 offer
    python cli.py placements accept U2310001A 12
    python cli.py placements withdraw U2310001A 12
    python cli.py placements decide-withdrawal staff01 12 --approve
    python cli.py placements register-rep hr@acme.com "Bob Lim" "Acme Corp"
    python cli.py placements approve-rep staff01 hr@acme.com
    python cli.py placements create hr@acme.com "Backend Intern" "Computer Science" 2
    python cli.py placements update hr@acme.com 3 "Backend Intern" "Computer Science" 3
    python cli.py placements approve-internship staff01 3
    python cli.py placements list --status APPROVED
    python cli.py placements report
"""
import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from .config import reload_config
from .csv_import import import_directory
from .database import get_engine, get_session, init_db
from .engine import Decision
from .listing import FilterCriteria
from .models import InternshipLevel, InternshipStatus
from .service import PlacementService

logger = logging.getLogger(__name__)


def _print_result(result) -> int:
    if result.ok:
        print(f"✓ ok {json.dumps(result.to_dict())}")
        return 0
    print(f"❌ {result.code.value}: {result.error}")
    return 1


def _internship_line(i) -> str:
    return (
        f"  {i.id:4}  {i.status.value:9} {'👁' if i.visible else ' '} "
        f"{i.confirmed_offers}/{i.slots}  {i.level.value:12} "
        f"{i.company_name[:20]:<20} {i.title[:40]}"
    )


def _add_posting_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument('title')
    p.add_argument('major', help='Preferred major')
    p.add_argument('slots', type=int)
    p.add_argument('--level', choices=[lv.value for lv in InternshipLevel],
                   default=InternshipLevel.BASIC.value)
    p.add_argument('--description')
    p.add_argument('--opening', type=date.fromisoformat, default=None)
    p.add_argument('--closing', type=date.fromisoformat, default=None)


def _posting_fields(args) -> dict:
    return dict(
        level=InternshipLevel(args.level),
        description=args.description,
        opening_date=args.opening,
        closing_date=args.closing,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Internship Placement Office')
    parser.add_argument('--db', type=Path, default=None,
                        help='SQLite DB path (default: PLACEMENT_DB_PATH or /tmp/placements.db)')
    parser.add_argument('--config', default=None, help='YAML config path')
    parser.add_argument('-v', '--verbose', action='store_true')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('init', help='Create tables')

    p = sub.add_parser('import', help='Import legacy CSV files and reconcile')
    p.add_argument('--data-dir', type=Path, default=Path('.'))

    p = sub.add_parser('apply', help='Student applies to an internship')
    p.add_argument('student_id')
    p.add_argument('internship_id', type=int)
    p.add_argument('--date', type=date.fromisoformat, default=None,
                   help='Application date (YYYY-MM-DD, default: today)')

    p = sub.add_parser('decide', help='Representative offers or rejects')
    p.add_argument('rep_id')
    p.add_argument('application_id', type=int)
    p.add_argument('decision', choices=[d.value for d in Decision])

    for name, help_text in (('accept', 'Student accepts an offer'),
                            ('reject', 'Student rejects an offer'),
                            ('withdraw', 'Student requests withdrawal')):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('student_id')
        p.add_argument('application_id', type=int)

    p = sub.add_parser('decide-withdrawal', help='Staff decides a withdrawal request')
    p.add_argument('staff_id')
    p.add_argument('application_id', type=int)
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument('--approve', action='store_true')
    group.add_argument('--deny', action='store_true')

    p = sub.add_parser('register-rep', help='Register a company representative')
    p.add_argument('rep_id')
    p.add_argument('name')
    p.add_argument('company')
    p.add_argument('--department')
    p.add_argument('--position')

    for name, help_text in (('approve-rep', 'Staff approves a representative'),
                            ('reject-rep', 'Staff rejects a representative')):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('staff_id')
        p.add_argument('rep_id')

    p = sub.add_parser('create', help='Representative posts an internship')
    p.add_argument('rep_id')
    _add_posting_arguments(p)

    p = sub.add_parser('update', help='Representative edits a posting (back to PENDING)')
    p.add_argument('rep_id')
    p.add_argument('internship_id', type=int)
    _add_posting_arguments(p)

    p = sub.add_parser('toggle-visibility', help='Show or hide an approved posting')
    p.add_argument('rep_id')
    p.add_argument('internship_id', type=int)

    for name, help_text in (('approve-internship', 'Staff approves a posting'),
                            ('reject-internship', 'Staff rejects a posting')):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('staff_id')
        p.add_argument('internship_id', type=int)

    p = sub.add_parser('list', help='List internships')
    p.add_argument('--status', choices=[s.value for s in InternshipStatus])
    p.add_argument('--level', choices=[lv.value for lv in InternshipLevel])
    p.add_argument('--major')
    p.add_argument('--company')
    p.add_argument('--visible-only', action='store_true')

    p = sub.add_parser('eligible', help='Internships a student can apply to')
    p.add_argument('student_id')

    sub.add_parser('withdrawals', help='Pending withdrawal requests')
    sub.add_parser('report', help='Status summary (JSON)')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.db:
        os.environ["PLACEMENT_DB_PATH"] = str(args.db)
    config = reload_config(args.config)

    if args.command == 'init':
        init_db(get_engine(Path(config.database.path)))
        return 0

    if args.command == 'import':
        engine = get_engine(Path(config.database.path))
        init_db(engine)
        with get_session(engine) as session:
            stats = import_directory(session, args.data_dir)
        engine.dispose()
        print(json.dumps(stats, indent=2))
        return 0

    service = PlacementService(config=config)
    service.start()

    if args.command == 'apply':
        return _print_result(service.apply(args.student_id, args.internship_id, today=args.date))
    if args.command == 'decide':
        return _print_result(service.company_decision(
            args.rep_id, args.application_id, Decision(args.decision)))
    if args.command == 'accept':
        return _print_result(service.accept_offer(args.student_id, args.application_id))
    if args.command == 'reject':
        return _print_result(service.reject_offer(args.student_id, args.application_id))
    if args.command == 'withdraw':
        return _print_result(service.request_withdrawal(args.student_id, args.application_id))
    if args.command == 'decide-withdrawal':
        return _print_result(service.decide_withdrawal(
            args.staff_id, args.application_id, approve=args.approve))

    if args.command == 'register-rep':
        return _print_result(service.register_representative(
            args.rep_id, args.name, args.company,
            department=args.department, position=args.position))
    if args.command == 'approve-rep':
        return _print_result(service.approve_representative(args.staff_id, args.rep_id))
    if args.command == 'reject-rep':
        return _print_result(service.reject_representative(args.staff_id, args.rep_id))
    if args.command == 'create':
        return _print_result(service.create_internship(
            args.rep_id, args.title, args.major, args.slots, **_posting_fields(args)))
    if args.command == 'update':
        return _print_result(service.update_internship(
            args.rep_id, args.internship_id, args.title, args.major, args.slots,
            **_posting_fields(args)))
    if args.command == 'toggle-visibility':
        return _print_result(service.toggle_internship_visibility(
            args.rep_id, args.internship_id))
    if args.command == 'approve-internship':
        return _print_result(service.approve_internship(args.staff_id, args.internship_id))
    if args.command == 'reject-internship':
        return _print_result(service.reject_internship(args.staff_id, args.internship_id))

    if args.command == 'list':
        criteria = FilterCriteria(
            status=InternshipStatus(args.status) if args.status else None,
            level=InternshipLevel(args.level) if args.level else None,
            preferred_major=args.major,
            company_name=args.company,
            visible_only=True if args.visible_only else None,
        )
        for i in service.internships(criteria):
            print(_internship_line(i))
        return 0

    if args.command == 'eligible':
        for i in service.eligible_internships(args.student_id):
            print(_internship_line(i))
        return 0

    if args.command == 'withdrawals':
        for a in service.withdrawal_requests():
            print(f"  {a.id:4}  {a.student_id:<12} internship {a.internship_id}")
        return 0

    if args.command == 'report':
        print(json.dumps(service.report(), indent=2))
        return 0

    return 1


if __name__ == '__main__':
    sys.exit(main())
