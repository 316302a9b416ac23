import logging

from rich.console import Console

from helmsman import *

__prog__ = "notes"

console = Console()

SCHEMA = """
metadata:
  version: "0.1.0"
  prompt: notes
commands:
  - name: add
    aliases: [a]
    description: Add a note
    required: true
    arguments:
      - name: text
        arg_type: string
    options:
      - name: priority
        short: p
        long: priority
        option_type: integer
        default: 1
        validation:
          - min: 1
            max: 5
  - name: list
    aliases: [ls]
    description: List notes
    required: true
    options:
      - name: all
        short: a
        long: all
        option_type: bool
  - name: done
    description: Mark a note as done
    arguments:
      - name: index
        arg_type: integer
        validation:
          - min: 1
global_options:
  - name: verbose
    short: v
    long: verbose
    option_type: bool
"""


class Notes(Context):
    def __init__(self):
        self.notes = []


class NoSuchNote(HandlerError):
    pass


@handler("add", context=Notes)
def add(context, arguments):
    context.notes.append([arguments["text"], arguments.typed("priority"), False])


@handler("list", context=Notes)
def show(context, arguments):
    for index, (text, priority, done) in enumerate(context.notes, 1):
        if arguments.typed("all", False) or not done:
            console.print("%d. [%s] %s (p%d)" % (index, "x" if done else " ", text, priority))


@handler(context=Notes)
def done(context, arguments):
    try:
        context.notes[arguments.typed("index") - 1][2] = True
    except IndexError:
        raise NoSuchNote("there is no note %s" % arguments["index"], hint="run 'list' to see the notes") from None


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)
    program = (
        Builder()
        .schema(loads(SCHEMA))
        .context(Notes())
        .handlers(add, show, done)
        .build()
    )
    raise SystemExit(program.run())
