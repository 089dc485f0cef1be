"""Vista template package — the Template object and its helpers."""

from vista.template.buffer import OutputBuffer, swap_output_buffer
from vista.template.core import EPOCH, Template
from vista.template.inline import InlineTemplate
from vista.template.paths import VirtualPath, render_directive, split_virtual_path

__all__ = [
    "EPOCH",
    "InlineTemplate",
    "OutputBuffer",
    "Template",
    "VirtualPath",
    "render_directive",
    "split_virtual_path",
    "swap_output_buffer",
]
