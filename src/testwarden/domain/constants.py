"""Built-in defaults. Pattern lists are glob patterns over resolved dotted call names."""

TESTWARDEN_BANNER = "TESTWARDEN :: test-quality governance"

DEFAULT_TEST_FILE_PATTERNS: tuple[str, ...] = ("test_*.py", "*_test.py")
DEFAULT_TEST_FUNCTION_PREFIX = "test"
DEFAULT_TEST_CLASS_PREFIX = "Test"
DEFAULT_EXCLUDED_DIRS: frozenset[str] = frozenset(
    {"__pycache__", ".git", ".hg", ".tox", ".nox", ".venv", "venv", "node_modules", "build", "dist"}
)

# --- Lifecycle hooks -------------------------------------------------------

PER_TEST_SETUP_HOOKS = frozenset({"setUp", "asyncSetUp", "setup_method", "setup_function", "setup"})
PER_TEST_TEARDOWN_HOOKS = frozenset(
    {"tearDown", "asyncTearDown", "teardown_method", "teardown_function", "teardown"}
)
ONCE_SETUP_HOOKS = frozenset({"setUpClass", "setup_class", "setUpModule", "setup_module"})
ONCE_TEARDOWN_HOOKS = frozenset(
    {"tearDownClass", "teardown_class", "tearDownModule", "teardown_module"}
)
FIXTURE_DECORATORS = frozenset({"pytest.fixture", "pytest.yield_fixture"})
TESTCASE_BASE_SUFFIX = "TestCase"

# --- Shared state ----------------------------------------------------------

MUTATING_METHODS = frozenset(
    {
        "append", "appendleft", "extend", "extendleft", "insert", "pop", "popleft",
        "popitem", "remove", "clear", "update", "add", "discard", "setdefault",
        "sort", "reverse", "put", "put_nowait", "__setitem__", "__delitem__",
    }
)

# --- Assertions and expectations -------------------------------------------

DEFAULT_ASSERTION_FUNCTIONS: tuple[str, ...] = (
    "pytest.fail",
    "self.fail",
    "fail",
    "assert_that",
    "expect",
    "verify",
)
EXPECTATION_METHODS = frozenset(
    {
        "assertRaises", "assertRaisesRegex", "assertRaisesRegexp",
        "assertWarns", "assertWarnsRegex", "assertLogs", "assertNoLogs",
    }
)
EXPECTATION_FUNCTIONS = frozenset({"pytest.raises", "pytest.warns", "pytest.deprecated_call"})
FAIL_FUNCTIONS = frozenset({"pytest.fail", "self.fail", "fail"})

# Positional arity of unittest assertions before the optional msg argument.
ASSERTION_ARITY: dict[str, int] = {
    "assertTrue": 1, "assertFalse": 1, "assertIsNone": 1, "assertIsNotNone": 1,
    "assertEqual": 2, "assertNotEqual": 2, "assertIs": 2, "assertIsNot": 2,
    "assertIn": 2, "assertNotIn": 2, "assertIsInstance": 2, "assertNotIsInstance": 2,
    "assertGreater": 2, "assertGreaterEqual": 2, "assertLess": 2, "assertLessEqual": 2,
    "assertAlmostEqual": 2, "assertNotAlmostEqual": 2, "assertCountEqual": 2,
    "assertRegex": 2, "assertNotRegex": 2, "assertDictEqual": 2, "assertListEqual": 2,
    "assertSetEqual": 2, "assertTupleEqual": 2, "assertSequenceEqual": 2,
    "assertMultiLineEqual": 2,
}
BOOLEAN_ASSERTIONS = frozenset({"assertTrue", "assertFalse"})

# --- Substitutions (patches, seeds, frozen clocks) -------------------------

PATCH_TARGET_CALLS = frozenset(
    {
        "unittest.mock.patch", "mock.patch", "mocker.patch",
        "unittest.mock.patch.dict", "mock.patch.dict", "mocker.patch.dict",
        "unittest.mock.patch.multiple", "mock.patch.multiple", "mocker.patch.multiple",
        "monkeypatch.setattr", "monkeypatch.setitem", "monkeypatch.delattr",
    }
)
PATCH_OBJECT_CALLS = frozenset(
    {"unittest.mock.patch.object", "mock.patch.object", "mocker.patch.object", "mocker.spy"}
)
ENVIRONMENT_PATCH_CALLS = frozenset({"monkeypatch.setenv", "monkeypatch.delenv"})

CLOCK_TARGETS: tuple[str, ...] = (
    "time.time",
    "time.time_ns",
    "time.localtime",
    "time.gmtime",
    "datetime.datetime.now",
    "datetime.datetime.utcnow",
    "datetime.datetime.today",
    "datetime.date.today",
)
FREEZE_CALLS = frozenset({"freezegun.freeze_time", "time_machine.travel"})
SEED_CALLS: dict[str, tuple[str, ...]] = {
    "random.seed": ("random",),
    "numpy.random.seed": ("numpy.random",),
    "faker.Faker.seed": ("faker",),
}
SUBSTITUTING_DECORATORS: dict[str, tuple[str, ...]] = {
    "responses.activate": ("requests",),
    "respx.mock": ("httpx",),
    "requests_mock.mock": ("requests",),
    "requests_mock.Mocker": ("requests",),
}
SUBSTITUTING_CALLS: dict[str, tuple[str, ...]] = {
    "responses.start": ("requests",),
    "responses.add": ("requests",),
    "requests_mock.Mocker": ("requests",),
    "respx.mock": ("httpx",),
}
SUBSTITUTING_FIXTURES: dict[str, tuple[str, ...]] = {
    "requests_mock": ("requests",),
    "httpx_mock": ("httpx",),
    "respx_mock": ("httpx",),
    "freezer": CLOCK_TARGETS,
    "time_machine": CLOCK_TARGETS,
    "fs": ("open", "io.open", "os", "shutil", "pathlib"),
}
ISOLATED_FILESYSTEM_FIXTURES = frozenset({"tmp_path", "tmpdir", "tmp_path_factory", "tmpdir_factory"})

# --- Rule tunables ---------------------------------------------------------

DEFAULT_EXTERNAL_CALLS: tuple[str, ...] = (
    "requests.*",
    "httpx.*",
    "aiohttp.*",
    "urllib.request.*",
    "urllib3.*",
    "http.client.*",
    "socket.*",
    "smtplib.*",
    "ftplib.*",
    "sqlite3.connect",
    "psycopg2.connect",
    "psycopg.connect",
    "pymysql.connect",
    "mysql.connector.connect",
    "sqlalchemy.create_engine",
    "boto3.*",
    "subprocess.*",
    "os.system",
    "os.popen",
    "os.remove",
    "os.unlink",
    "os.rename",
    "os.mkdir",
    "os.makedirs",
    "os.listdir",
    "shutil.*",
    "open",
    "io.open",
    "time.sleep",
)

DEFAULT_EXTERNAL_TYPES: tuple[str, ...] = (
    "*Gateway",
    "*Client",
    "*Connection",
    "*Database",
    "Live*",
    "Real*",
    "Remote*",
    "requests.Session",
    "httpx.Client",
    "httpx.AsyncClient",
    "smtplib.SMTP",
    "smtplib.SMTP_SSL",
    "ftplib.FTP",
    "socket.socket",
    "redis.Redis",
    "redis.StrictRedis",
    "pymongo.MongoClient",
    "boto3.Session",
)
TEST_DOUBLE_PREFIXES: tuple[str, ...] = ("Fake", "Mock", "Stub", "Dummy", "InMemory", "Spy", "Magic")

DEFAULT_NONDETERMINISTIC_CALLS: tuple[str, ...] = (
    "time.time",
    "time.time_ns",
    "time.localtime",
    "time.gmtime",
    "datetime.datetime.now",
    "datetime.datetime.utcnow",
    "datetime.datetime.today",
    "datetime.date.today",
    "random.*",
    "numpy.random.*",
    "uuid.uuid1",
    "uuid.uuid4",
    "secrets.*",
    "os.urandom",
    "os.getenv",
    "os.environ.get",
    "requests.*",
    "httpx.*",
    "urllib.request.urlopen",
    "socket.*",
)
DETERMINISTIC_CALLS: tuple[str, ...] = ("random.seed", "numpy.random.seed")
SEEDABLE_FACTORIES: tuple[str, ...] = (
    "random.Random",
    "numpy.random.default_rng",
    "numpy.random.RandomState",
    "numpy.random.Generator",
)

DEFAULT_ORDERING_MARKERS: tuple[str, ...] = (
    "pytest.mark.order",
    "pytest.mark.run",
    "pytest.mark.dependency",
    "pytest.mark.incremental",
    "pytest.mark.first",
    "pytest.mark.second",
    "pytest.mark.last",
    "pytest.mark.second_to_last",
)

# --- Behavior naming lexicon -----------------------------------------------

DEFAULT_ACTION_VERBS: tuple[str, ...] = (
    "accept", "add", "aggregate", "analyze", "apply", "approve", "authenticate",
    "authorize", "build", "calculate", "call", "cancel", "charge", "check", "clear",
    "close", "collect", "compare", "compute", "configure", "connect", "convert",
    "count", "create", "debit", "decline", "decode", "deduct", "delete", "deposit",
    "deserialize", "detect", "discover", "dispatch", "emit", "encode", "evaluate",
    "execute", "export", "fetch", "filter", "find", "flag", "format", "generate",
    "get", "handle", "import", "initialize", "insert", "issue", "load", "lock",
    "log", "login", "logout", "lookup", "map", "mark", "match", "merge", "normalize",
    "notify", "open", "parse", "pay", "post", "process", "publish", "put", "read",
    "receive", "refund", "register", "reject", "remove", "render", "report",
    "request", "reset", "resolve", "retry", "run", "save", "schedule", "search",
    "send", "serialize", "set", "sign", "skip", "sort", "split", "start", "stop",
    "store", "submit", "subscribe", "sum", "transfer", "transform", "translate",
    "unlock", "update", "upload", "validate", "verify", "visit", "withdraw", "write",
    "reduce", "increase", "decrease", "change", "rename", "round", "trim", "enable",
    "disable", "refresh", "expire", "retrieve", "list", "display", "show", "hide",
)
DEFAULT_OUTCOME_TOKENS: tuple[str, ...] = (
    "should", "shall", "must", "will", "returns", "return", "raises", "raise",
    "throws", "throw", "fails", "fail", "succeeds", "succeed", "yields", "gives",
    "equals", "is", "are", "has", "have", "becomes", "contains", "produces",
    "expect", "expects", "expected", "then", "result", "results", "error", "errors",
    "valid", "invalid", "true", "false", "none", "empty", "ok", "success",
    "failure", "rejected", "accepted", "approved", "declined", "unchanged",
    "ignored", "denied", "allowed", "not", "never", "always",
)
DEFAULT_CONDITION_TOKENS: tuple[str, ...] = (
    "when", "with", "without", "given", "if", "unless", "for", "after", "before",
    "during", "while", "on", "once", "until", "where", "whenever", "from", "in",
)

# Factories whose results are immutable; fixtures built from them are safe to share.
IMMUTABLE_FACTORIES = frozenset(
    {
        "frozenset", "tuple", "int", "float", "complex", "str", "bytes", "bool", "range",
        "Decimal", "Fraction", "date", "datetime", "time", "timedelta", "timezone",
        "UUID", "Path", "PurePath", "PurePosixPath", "MappingProxyType",
    }
)
