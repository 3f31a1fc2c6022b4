"""Widget classes and render helpers for the machine browser UI."""

from htb_browser.widgets.chrome import (
    ActiveMachinePanel,
    ContextFooter,
    render_active_panel,
    render_mode_badge,
    render_status_line,
)
from htb_browser.widgets.listing import (
    MachineList,
    render_machine_option,
    set_ascii_icons,
)

__all__ = [
    "ActiveMachinePanel",
    "ContextFooter",
    "MachineList",
    "render_active_panel",
    "render_machine_option",
    "render_mode_badge",
    "render_status_line",
    "set_ascii_icons",
]
