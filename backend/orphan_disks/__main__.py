"""Allow ``python -m orphan_disks``."""

from orphan_disks.cli import main

main()
