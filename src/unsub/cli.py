"""CLI entry point: mint/verify tokens, preview or send test batches."""

import argparse
import json
import logging
import sys

from unsub.config import Settings
from unsub.errors import InvalidToken
from unsub.models import SendBatchRequest
from unsub.tokens import TokenCodec


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unsub-poc", description="One-click unsubscribe proof of concept"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    issue = sub.add_parser("issue-token", help="Print an unsubscribe token for an address")
    issue.add_argument("email")

    verify = sub.add_parser("verify-token", help="Print the address a token was issued for")
    verify.add_argument("token")

    send = sub.add_parser(
        "send-batch",
        help="Send test emails (requires SENDGRID_API_KEY and SENDER_EMAIL)",
    )
    send.add_argument(
        "--count", type=int, default=0,
        help="Number of generated addresses to send to (clamped to 0-50)",
    )
    send.add_argument("--subject", default=None, help="Subject line")
    send.add_argument(
        "--to", metavar="EMAIL", action="append", default=[],
        help="Additional recipient; may be repeated",
    )

    preview = sub.add_parser(
        "preview-html", help="Write the HTML body for a recipient to a file (no email sent)"
    )
    preview.add_argument("email")
    preview.add_argument("file")
    preview.add_argument("--subject", default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    log = logging.getLogger(__name__)
    codec = TokenCodec(settings.jwt_secret)

    if args.command == "issue-token":
        print(codec.issue(args.email))
        return 0

    if args.command == "verify-token":
        try:
            print(codec.verify(args.token))
        except InvalidToken as e:
            log.error("%s", e)
            return 1
        return 0

    from unsub.batch import BatchSender

    if args.command == "preview-html":
        sender = BatchSender(settings, codec, mailer=None)
        message = sender.compose(args.email, args.subject or settings.default_subject)
        with open(args.file, "w", encoding="utf-8") as f:
            f.write(message.html_body)
        log.info("Preview written to %s", args.file)
        return 0

    # send-batch
    from unsub.email_sender import SendGridMailer

    settings.require("sendgrid_api_key")
    sender = BatchSender(settings, codec, SendGridMailer.from_api_key(settings.sendgrid_api_key))
    result = sender.send_batch(SendBatchRequest(
        count=args.count, subject=args.subject, additional_emails=args.to,
    ))
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
