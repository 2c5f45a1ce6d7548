"""Shared constant values used across the harness."""

# Relationship kinds
REL_INHERITS_FROM = "inherits-from"
REL_IMPLEMENTS_CAPABILITY = "implements-capability-of"
REL_HOLDS_REFERENCE = "holds-reference-to"
REL_DELEGATES_CALL = "delegates-call-to"
REL_INSTANTIATES = "instantiates"

RELATIONSHIP_KINDS = (
    REL_INHERITS_FROM,
    REL_IMPLEMENTS_CAPABILITY,
    REL_HOLDS_REFERENCE,
    REL_DELEGATES_CALL,
    REL_INSTANTIATES,
)
CALL_EDGE_KINDS = (REL_DELEGATES_CALL, REL_INSTANTIATES)

# Role multiplicity
MULTIPLICITY_ONE = "one"
MULTIPLICITY_MANY = "many"

# Rule coverage
COVERAGE_SOURCE = "source"
COVERAGE_TARGET = "target"

# Ordering positions
ORDER_FIRST = "first"
ORDER_LAST = "last"
ORDER_BEFORE = "before"

# Member kinds
MEMBER_METHOD = "method"
MEMBER_CONSTRUCTOR = "constructor"
MEMBER_FIELD = "field"

# Call edge kinds
EDGE_CALL = "call"
EDGE_NEW = "new"

# Return categories
RETURNS_ANY = "any"
RETURNS_NONE = "none"
RETURNS_VALUE = "value"
RETURNS_OBJECT = "object"
RETURNS_SELF = "self"

VISIBILITY_PUBLIC = "public"
VISIBILITY_PROTECTED = "protected"
VISIBILITY_PRIVATE = "private"

# Violation reasons
REASON_UNBOUND_ROLE = "unbound-role"
REASON_MISSING_EDGE = "missing-edge"
REASON_ORDERING = "ordering"

# Pattern categories
CATEGORIES = ("creational", "structural", "behavioral")

# Enumeration defaults
DEFAULT_CANDIDATE_CAP = 100
DEFAULT_POWERSET_LIMIT = 8
DEFAULT_MAX_BINDINGS = 50_000

# Output formats
FORMAT_TEXT = "text"
FORMAT_JSON = "json"
FORMAT_YAML = "yaml"
OUTPUT_FORMATS = (FORMAT_TEXT, FORMAT_JSON, FORMAT_YAML)
FORMAT_ENV_VAR = "PATTERNCHECK_FORMAT"
