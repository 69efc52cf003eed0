"""tessera-tui: declarative terminal UI runtime with line-diffed output."""

# Styled text encoding
from tessera.tui.ansi import (
    Color,
    TextStyle,
    encode,
    pad_to_width,
    strip,
    take_columns,
    visible_length,
)

# Application runner
from tessera.tui.app import App, AppRunner

# Frame buffer
from tessera.tui.buffer import Alignment, FrameBuffer

# Configuration
from tessera.tui.config import RuntimeConfig, configure_logging

# Output diffing
from tessera.tui.diff import FrameDiffWriter, build_output_lines

# Environment
from tessera.tui.environment import DEFAULT_PALETTE, OCEAN_PALETTE, EnvironmentValues, Palette

# Focus
from tessera.tui.focus import FocusManager

# Identity
from tessera.tui.identity import ViewIdentity

# Keyboard input handling
from tessera.tui.keys import KeyEvent, KeyEventDispatcher, matches_key, parse_keys

# Lifecycle and background tasks
from tessera.tui.lifecycle import CancellationToken, LifecycleManager, TaskContext, after, periodic

# Modifiers
from tessera.tui.modifiers import BORDER_STYLES, EdgeInsets

# Preferences
from tessera.tui.preferences import PreferenceKey, PreferenceStorage

# Render loop
from tessera.tui.render_loop import FrameStats, RenderLoop

# Runtime services
from tessera.tui.runtime import TUIContext

# Signals
from tessera.tui.signals import SignalFlags

# State
from tessera.tui.state import Binding, RenderScheduler, StateBox, StateKey, StateStorage, state

# Status bar
from tessera.tui.status_bar import StatusBarItem, StatusBarState

# Terminal interface and implementations
from tessera.tui.terminal import ProcessTerminal, Terminal

# Views and evaluator
from tessera.tui.view import PrimitiveView, RenderContext, View, render_view
from tessera.tui.views import (
    Conditional,
    Divider,
    EmptyView,
    ForEach,
    Group,
    HStack,
    Spacer,
    Text,
    VStack,
    ZStack,
)

__all__ = [
    # Encoding
    "Color",
    "TextStyle",
    "encode",
    "pad_to_width",
    "strip",
    "take_columns",
    "visible_length",
    # App
    "App",
    "AppRunner",
    # Buffer
    "Alignment",
    "FrameBuffer",
    # Config
    "RuntimeConfig",
    "configure_logging",
    # Diff
    "FrameDiffWriter",
    "build_output_lines",
    # Environment
    "DEFAULT_PALETTE",
    "OCEAN_PALETTE",
    "EnvironmentValues",
    "Palette",
    # Focus
    "FocusManager",
    # Identity
    "ViewIdentity",
    # Keys
    "KeyEvent",
    "KeyEventDispatcher",
    "matches_key",
    "parse_keys",
    # Lifecycle
    "CancellationToken",
    "LifecycleManager",
    "TaskContext",
    "after",
    "periodic",
    # Modifiers
    "BORDER_STYLES",
    "EdgeInsets",
    # Preferences
    "PreferenceKey",
    "PreferenceStorage",
    # Render loop
    "FrameStats",
    "RenderLoop",
    # Runtime
    "TUIContext",
    # Signals
    "SignalFlags",
    # State
    "Binding",
    "RenderScheduler",
    "StateBox",
    "StateKey",
    "StateStorage",
    "state",
    # Status bar
    "StatusBarItem",
    "StatusBarState",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Views
    "Conditional",
    "Divider",
    "EmptyView",
    "ForEach",
    "Group",
    "HStack",
    "PrimitiveView",
    "RenderContext",
    "Spacer",
    "Text",
    "VStack",
    "View",
    "ZStack",
    "render_view",
]
