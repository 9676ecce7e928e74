"""Shell wrapper functions that let 'gw cd' change the caller's directory."""

import os
from typing import Mapping, Optional

from git_worktree_keeper.exceptions import ValidationError

SHELLS = ("bash", "zsh", "fish")

_POSIX_WRAPPER = """\
gw() {
  if [ "$1" = "cd" ]; then
    shift
    local dir
    dir="$(command gw cd "$@")" && cd "$dir"
  else
    command gw "$@"
  fi
}
"""

_FISH_WRAPPER = """\
function gw
  if test (count $argv) -ge 1; and test $argv[1] = "cd"
    set -e argv[1]
    set -l dir (command gw cd $argv); and cd $dir
  else
    command gw $argv
  end
end
"""


def detect_shell(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Guess the shell from $SHELL."""
    environ = os.environ if environ is None else environ
    shell = environ.get("SHELL", "")
    for name in SHELLS:
        if shell.endswith(name):
            return name
    return None


def shell_init_script(shell: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    """Wrapper function source for shell (detected when None).

    Raises:
        ValidationError: If the shell is unknown or cannot be detected
    """
    shell = shell or detect_shell(environ)
    if shell is None:
        raise ValidationError("could not detect shell")
    if shell in ("bash", "zsh"):
        return _POSIX_WRAPPER
    if shell == "fish":
        return _FISH_WRAPPER
    raise ValidationError(f"unsupported shell: {shell}")
