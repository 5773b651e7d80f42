# workverify/scripts/submit.py
import sys
from pathlib import Path
from workverify.client import DEFAULT_URL, VerificationForm, VerifyClient, paragraphs

USAGE = "usage: python -m workverify.scripts.submit before.jpg after.jpg \"instructions\" [relay-url]"

def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) not in (3, 4):
        print(USAGE)
        return 1

    form = VerificationForm()
    for slot, path in (("before", args[0]), ("after", args[1])):
        if Path(path).is_file():
            form.select_image(slot, path)
    form.instructions = args[2]
    client = VerifyClient(args[3] if len(args) == 4 else DEFAULT_URL)

    problem = form.validate()
    if problem:
        print(problem, file=sys.stderr)
        return 1
    print("Analyzing...", file=sys.stderr)
    if not form.submit(client):
        print(form.error, file=sys.stderr)
        return 2
    for p in paragraphs(form.result):
        print(p)
    return 0

if __name__ == "__main__":
    sys.exit(main())
