"""
agromart.cli — Click command-line interface.

main.py holds the command tree; each command's body lives in a private
module (_login, _verify, _config_cmd) imported lazily by its command.
"""
