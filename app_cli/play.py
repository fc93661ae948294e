from __future__ import annotations
import argparse, json, logging, pathlib, sys

from assess_core.codec import decode, from_wire, read_fragment
from assess_core.review import build_review, review_summary
from assess_core.session import COMPLETED, IN_PROGRESS, REVIEWING, QuizSession
from assess_core.types import DecodeError, EmbedPayload, ViewState, option_label

log = logging.getLogger(__name__)

HELP = "keys: 1-9 pick | enter confirm/next | n next | p prev | f flip | s submit | q quit"
# terminal words for the browser key names
KEYS = {"": "Enter", "n": "ArrowRight", "p": "ArrowLeft", "f": " "}


def load_payload(src: str) -> EmbedPayload | DecodeError:
    path = pathlib.Path(src)
    if path.suffix == ".json" and path.exists():
        try:
            obj = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as exc:
            return DecodeError(reason="invalid_json", detail=str(exc))
        return from_wire(obj)
    return decode(read_fragment(src))


def show(view: ViewState) -> None:
    it = view.item
    if it is None:
        return
    head = f"[{view.index + 1}/{view.total}]"
    if view.timer_display:
        head += f"  {view.timer_display}"
    print(head)
    if it.is_card:
        print(f"  {it.back if view.flipped else it.front}")
        if view.flipped and not view.answered:
            print("  [1] knew it   [2] study again")
    else:
        print(f"  {it.prompt}")
        for idx, opt in enumerate(it.options):
            mark = ">" if view.selected == idx else " "
            if view.revealed and opt.is_correct:
                mark = "*"
            print(f"  {mark} {opt.label or option_label(idx)}. {opt.body}")
    if view.revealed and it.explanation:
        print(f"  Explanation: {it.explanation}")
    if view.last_noop is not None:
        log.debug("ignored %s: %s", view.last_noop.event, view.last_noop.reason)


def show_results(sess: QuizSession) -> None:
    view = sess.view()
    sc = view.score
    if sc is None:
        return
    verdict = {True: "Passed!", False: "Not Passed", None: ""}[sc.passed]
    print(f"\n{sc.percentage}%  {sc.correct_points:g} out of {sc.total_points:g} points  {verdict}")
    print("Review:", review_summary(build_review(sess.state)))


def run(sess: QuizSession, read=input) -> None:
    print(HELP)
    while sess.state.status == IN_PROGRESS:
        view = sess.view()
        show(view)
        raw = read("> ").strip().lower()
        if raw == "q":
            break
        if raw == "s":
            sess.submit()
            continue
        sess.press_key(KEYS.get(raw, raw))
    if sess.state.status == COMPLETED:
        show_results(sess)
        sess.enter_review()
        while sess.state.status == REVIEWING:
            show(sess.view())
            if sess.go_next().last_noop is not None:
                break
    sess.close()


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Play an embed payload in the terminal.")
    ap.add_argument("source", help="embed URL, bare token, or a .json payload file")
    ap.add_argument("--mode", choices=("practice", "exam"), default="practice")
    ap.add_argument("--time-limit", type=float, default=None, help="minutes (exam mode only)")
    ap.add_argument("--passing-score", type=float, default=None)
    ap.add_argument("--shuffle", action="store_true")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    payload = load_payload(args.source)
    if isinstance(payload, DecodeError):
        print(f"Could not load quiz ({payload.reason}): {payload.detail}", file=sys.stderr)
        return 2

    print(payload.title)
    sess = QuizSession(
        payload.items,
        mode=args.mode,
        title=payload.title,
        time_limit_min=args.time_limit,
        passing_score=args.passing_score,
        shuffle=args.shuffle,
        seed=args.seed,
    )
    run(sess)
    return 0


if __name__ == "__main__":
    sys.exit(main())
