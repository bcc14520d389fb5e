from rich import print
from rich.pretty import pprint

from requisite import *

__styles__ = {
    "incomplete": "bold #FFB400",
    "error": "underline #FF4DA6",
}

canon = Canon()
canon.add(Command("git"))


@canon.command("git commit", Parameter("message", names=("-m",)), Parameter("amend", "boolean"))
def commit(env, args, request):
    return "committed %r" % args["message"]


@canon.command("echo", Parameter("text"))
def echo(env, args, request):
    return args["text"]


if __name__ == '__main__':
    requisition = Requisition(canon, colorful=True, shell=True, deferred=True)

    requisition.update("git comm", 5)
    print(requisition)
    pprint(requisition)

    requisition.command_assignment.complete()
    requisition.update(str(requisition) + " -m 'first words' --amend")
    print(requisition)
    pprint(requisition.args())
    pprint(requisition.exec())
