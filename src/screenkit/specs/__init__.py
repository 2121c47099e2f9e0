"""
Declarative screen specifications.

Everything here is an immutable value: fields, option sources, layouts,
menus. The runtime package turns these into render trees.
"""

from screenkit.specs.feedback import Feedback, Message, MessageKind, MessageLevel
from screenkit.specs.fields import (
    ChoiceField,
    CheckBox,
    Code,
    Cropper,
    DateTimer,
    Field,
    FieldConfig,
    FieldKind,
    Input,
    Label,
    Matrix,
    Orientation,
    Password,
    Picture,
    Quill,
    Radio,
    Relation,
    Select,
    Switcher,
    TextArea,
    Upload,
)
from screenkit.specs.layouts import (
    TD,
    Accordion,
    Block,
    Column,
    Columns,
    Group,
    Layout,
    Legend,
    Modal,
    Pane,
    Rows,
    Sight,
    Table,
    Tabs,
    Wrapper,
)
from screenkit.specs.menu import MenuItem, RouteRef, TabMenu
from screenkit.specs.options import (
    ContextRef,
    EmptyOption,
    ModelQuery,
    OptionSource,
    RawQuery,
    StaticOptions,
    ref,
)
from screenkit.specs.predicates import (
    ComputedPredicate,
    LiteralPredicate,
    Predicate,
    as_predicate,
)

__all__ = [
    # Fields
    "CheckBox",
    "ChoiceField",
    "Code",
    "Cropper",
    "DateTimer",
    "Field",
    "FieldConfig",
    "FieldKind",
    "Input",
    "Label",
    "Matrix",
    "Orientation",
    "Password",
    "Picture",
    "Quill",
    "Radio",
    "Relation",
    "Select",
    "Switcher",
    "TextArea",
    "Upload",
    # Options
    "ContextRef",
    "EmptyOption",
    "ModelQuery",
    "OptionSource",
    "RawQuery",
    "StaticOptions",
    "ref",
    # Predicates
    "ComputedPredicate",
    "LiteralPredicate",
    "Predicate",
    "as_predicate",
    # Layouts
    "Accordion",
    "Block",
    "Column",
    "Columns",
    "Group",
    "Layout",
    "Legend",
    "Modal",
    "Pane",
    "Rows",
    "Sight",
    "TD",
    "Table",
    "Tabs",
    "Wrapper",
    # Navigation
    "MenuItem",
    "RouteRef",
    "TabMenu",
    # Feedback
    "Feedback",
    "Message",
    "MessageKind",
    "MessageLevel",
]
