import argparse
import logging
import sys

from . import language, text
from .normalize import normalize

SEPARATOR = "-" * 50


def main(args: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="chomsky",
        description="Convert a context-free grammar to Chomsky Normal Form",
    )
    parser.add_argument("grammar", help="Path to a file containing the grammar definition")
    parser.add_argument(
        "--start",
        type=str,
        default=text.DEFAULT_START,
        help="The name of the start symbol. The default is S.",
    )
    parser.add_argument(
        "--steps",
        action="store_true",
        help="Print the grammar after every step of the conversion, not just the final one.",
    )
    parser.add_argument(
        "--check",
        type=int,
        default=None,
        metavar="N",
        help="Enumerate every string of length at most N in both the original and the "
        "converted grammar and report whether they agree. Exits with status 1 if they don't.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log the details of every pass.",
    )

    parsed = parser.parse_args(args[1:])

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        grammar = text.load_grammar(parsed.grammar, start=parsed.start)
    except OSError as e:
        print(f"Error reading grammar file {parsed.grammar}: {e}", file=sys.stderr)
        return 2
    except text.GrammarSyntaxError as e:
        print(f"Error parsing grammar definition: {e}", file=sys.stderr)
        return 2

    conversion = normalize(grammar)

    if parsed.steps:
        print("Original grammar:")
        print(grammar)
        print(SEPARATOR)
        for index, stage in enumerate(conversion.stages):
            print(f"Step {index + 1}: {stage.name}")
            print(stage.grammar)
            print(SEPARATOR)

    print("Final CNF grammar:")
    print(conversion.result)

    for stage_name, observation in conversion.observations:
        print(f"Note ({stage_name}): {observation.value}")
    if conversion.generates_empty:
        print(f"Note: the original grammar also generates the empty string ({text.EPSILON})")

    if parsed.check is not None:
        expected = language.strings(grammar, parsed.check)
        actual = language.strings(conversion.result, parsed.check)
        if conversion.generates_empty:
            actual.add(())

        difference = expected ^ actual
        if len(difference) > 0:
            print(f"Languages differ up to length {parsed.check}:")
            for word in sorted(difference):
                side = "original only" if word in expected else "converted only"
                print(f"  {language.format_word(word)} ({side})")
            return 1

        print(f"Languages agree on all {len(expected)} strings up to length {parsed.check}")

    return 0


def run():
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    run()
