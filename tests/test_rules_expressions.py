from idiomlint.engine import analyze
from idiomlint.severity import Severity
from idiomlint.syntax import node_from_dict


def node(kind, loc, children=None, **attrs):
    data = {"kind": kind, "loc": loc}
    if attrs:
        data["attrs"] = attrs
    if children:
        data["children"] = children
    return data


def ref(name, loc, type=None, **attrs):
    if type is not None:
        attrs["type"] = type
    return node("DeclRefExpr", loc, name=name, **attrs)


def statement(expr, line=3):
    return node("ExprStatement", f"{line}:5", {"expr": expr})


def unit(*statements):
    body = node("CompoundStatement", "2:12", {"statements": list(statements)})
    function = node("FunctionDecl", "2:1", {"body": body}, name="run")
    return {"kind": "TranslationUnit", "loc": "main.cpp:1:1", "children": {"decls": [function]}}


def findings(tree, rule_id):
    return analyze(node_from_dict(tree)).for_rule(rule_id)


VECTOR = {"spelling": "std::vector<int>", "category": "class"}
ITERATOR = {"spelling": "Iter", "category": "class"}


# ----------------------------------------------------------------------
# R02 std::endl
# ----------------------------------------------------------------------
def _insert(operand):
    inner = node(
        "StreamInsertExpr",
        "3:5",
        {
            "stream": ref("cout", "3:5", qualified_name="std::cout"),
            "operand": node("Literal", "3:18", literal_kind="string", value='"done"'),
        },
    )
    return statement(node("StreamInsertExpr", "3:5", {"stream": inner, "operand": operand}))


def test_endl_insertion_is_reported_at_the_operand():
    tree = unit(_insert(ref("endl", "3:29", qualified_name="std::endl")))

    (finding,) = findings(tree, "R02")

    assert (finding.span.line, finding.span.column) == (3, 29)
    assert finding.message == "std::endl flushes 'std::cout' after the newline; insert '\\n' instead"
    assert finding.severity is Severity.INFO


def test_newline_and_foreign_endl_are_not_reported():
    tree = unit(
        _insert(node("Literal", "3:29", literal_kind="character", value="'\\n'")),
        _insert(ref("endl", "3:29", namespace="mylib")),
    )

    assert findings(tree, "R02") == ()


# ----------------------------------------------------------------------
# R04 post-increment
# ----------------------------------------------------------------------
def test_discarded_post_decrement_through_reference():
    reference = {"spelling": "Iter&", "category": "reference", "element": ITERATOR}
    tree = unit(statement(node("PostDecrementExpr", "3:5", {"operand": ref("it", "3:5", reference)})))

    (finding,) = findings(tree, "R04")

    assert finding.message == "post-decrement of 'it' (Iter) copies a value that is never used; write '--it'"


def test_post_increment_discarded_by_void_cast_and_comma():
    void_cast = node(
        "CStyleCastExpr",
        "3:5",
        {"operand": node("PostIncrementExpr", "3:11", {"operand": ref("it", "3:11", ITERATOR)})},
        type="void",
    )
    comma = node(
        "BinaryOperator",
        "4:5",
        {
            "lhs": node("PostIncrementExpr", "4:5", {"operand": ref("first", "4:5", ITERATOR)}),
            "rhs": node("PostIncrementExpr", "4:14", {"operand": ref("last", "4:14", ITERATOR)}),
        },
        operator=",",
    )

    report = analyze(node_from_dict(unit(statement(void_cast), statement(comma, line=4))))

    assert [(f.span.line, f.span.column) for f in report.for_rule("R04")] == [(3, 11), (4, 5), (4, 14)]
    assert report.for_rule("R13") == ()


def test_post_increment_whose_value_is_used():
    init = node("PostIncrementExpr", "3:16", {"operand": ref("it", "3:16", ITERATOR)})
    tree = unit(
        node("VariableDecl", "3:5", {"init": init}, name="previous", type=ITERATOR),
        statement(node("PostIncrementExpr", "4:5", {"operand": ref("count", "4:5", "int")}), line=4),
        statement(
            node("PostIncrementExpr", "5:5", {"operand": ref("t", "5:5", {"spelling": "T", "category": "unresolved"})}),
            line=5,
        ),
    )

    assert findings(tree, "R04") == ()


# ----------------------------------------------------------------------
# R08 signed indices
# ----------------------------------------------------------------------
def _index(index, container_type=VECTOR):
    return statement(
        node("ContainerIndexExpr", "3:5", {"container": ref("values", "3:5", container_type), "index": index})
    )


def test_signed_index_is_reported_at_the_index():
    (finding,) = findings(unit(_index(ref("i", "3:12", "int"))), "R08")

    assert (finding.span.line, finding.span.column) == (3, 12)
    assert finding.message == "index 'i' has signed type 'int'; index containers with std::size_t"


def test_indices_that_are_fine():
    tree = unit(
        _index(ref("i", "3:12", "std::size_t")),
        _index(node("Literal", "3:12", literal_kind="integer", value=0, type="int")),
        _index(ref("i", "3:12", "int"), container_type="int[4]"),
        _index(ref("i", "3:12", {"spelling": "auto", "category": "unresolved"})),
    )

    assert findings(tree, "R08") == ()


# ----------------------------------------------------------------------
# R09 NULL arguments
# ----------------------------------------------------------------------
def _call(argument, overload=None):
    attrs = {"callee": "set"}
    if overload is not None:
        attrs["overload"] = overload
    return statement(node("CallExpr", "3:5", {"callee": ref("set", "3:5"), "arguments": [argument]}, **attrs))


def test_null_selecting_integer_overload_is_an_error():
    tree = unit(_call(ref("NULL", "3:9"), {"name": "set", "parameter_types": ["int"]}))

    report = analyze(node_from_dict(tree))
    (finding,) = report.for_rule("R09")

    assert finding.message == "NULL passed as argument 1 of 'set' selects the integer parameter 'int'; pass nullptr"
    assert finding.severity is Severity.ERROR
    assert report.exit_code() == 2


def test_null_expanded_literal_is_recognised():
    literal = node("Literal", "3:9", literal_kind="integer", value=0, macro="NULL")
    tree = unit(_call(literal, {"name": "set", "parameter_types": [{"spelling": "long", "category": "builtin"}]}))

    assert len(findings(tree, "R09")) == 1


def test_null_without_integer_overload():
    tree = unit(
        _call(ref("NULL", "3:9"), {"name": "set", "parameter_types": ["char*"]}),
        _call(ref("NULL", "3:9")),
        _call(ref("nullptr_value", "3:9"), {"name": "set", "parameter_types": ["int"]}),
    )

    assert findings(tree, "R09") == ()


# ----------------------------------------------------------------------
# R13 C-style casts
# ----------------------------------------------------------------------
def test_c_style_cast_suggests_named_cast():
    cast = node(
        "CStyleCastExpr",
        "3:5",
        {"operand": ref("raw", "3:20", "void*")},
        type="Widget*",
        equivalent_cast="reinterpret_cast",
    )

    (finding,) = findings(unit(statement(cast)), "R13")

    assert finding.message == "C-style cast to 'Widget*'; use reinterpret_cast<Widget*> or another named cast"


def test_void_cast_is_not_reported():
    cast = node("CStyleCastExpr", "3:5", {"operand": ref("unused", "3:11", "int")}, type="void")

    assert findings(unit(statement(cast)), "R13") == ()


# ----------------------------------------------------------------------
# R14 raw new/delete
# ----------------------------------------------------------------------
def test_raw_new_and_delete():
    allocation = node("NewExpr", "3:20", allocated_type="Widget")
    tree = unit(
        node("VariableDecl", "3:5", {"init": allocation}, name="widget", type="Widget*"),
        statement(node("DeleteExpr", "4:5", {"operand": ref("buffer", "4:14", "char*")}, array=True), line=4),
    )

    new_finding, delete_finding = findings(tree, "R14")

    assert new_finding.message == (
        "raw 'new Widget' hands out an owning pointer; use std::make_unique<Widget> or std::make_shared"
    )
    assert delete_finding.message.startswith("manual 'delete[]'")


def test_new_handed_to_smart_pointer_is_not_reported():
    owned = node(
        "ConstructExpr",
        "3:30",
        {"arguments": [node("NewExpr", "3:31", allocated_type="Widget")]},
        type="std::unique_ptr<Widget>",
    )
    reset = node(
        "MemberCallExpr",
        "4:5",
        {
            "object": ref("shared", "4:5", "std::shared_ptr<Widget>"),
            "arguments": [node("ParenExpr", "4:18", {"operand": node("NewExpr", "4:19", allocated_type="Widget")})],
        },
        method="reset",
    )
    placement = node("NewExpr", "5:5", allocated_type="Widget", placement=True)
    tree = unit(
        node("VariableDecl", "3:5", {"init": owned}, name="owner", type="std::unique_ptr<Widget>"),
        statement(reset, line=4),
        statement(placement, line=5),
    )

    assert findings(tree, "R14") == ()


# ----------------------------------------------------------------------
# R17 size comparisons
# ----------------------------------------------------------------------
def _size_call(loc, method="size", type=VECTOR):
    return node("MemberCallExpr", loc, {"object": ref("v", loc, type)}, method=method)


def _compare(operator, lhs, rhs, line=3):
    return statement(node("BinaryOperator", f"{line}:9", {"lhs": lhs, "rhs": rhs}, operator=operator), line=line)


def _zero(loc):
    return node("Literal", loc, literal_kind="integer", value=0)


def test_size_compared_with_zero():
    tree = unit(
        _compare("==", _size_call("3:9"), _zero("3:21")),
        _compare("<", _zero("4:9"), _size_call("4:13", method="length"), line=4),
    )

    equal, less = findings(tree, "R17")

    assert equal.message == "'v.size() == 0' tests for emptiness; use 'v.empty()'"
    assert less.message == "'0 < v.length()' tests for emptiness; use '!v.empty()'"


def test_size_comparisons_that_are_not_emptiness_tests():
    tree = unit(
        _compare(">", _size_call("3:9"), node("Literal", "3:20", literal_kind="integer", value=1)),
        _compare("<", _size_call("4:9"), _zero("4:20"), line=4),
        _compare("==", _size_call("5:9", type="int"), _zero("5:20"), line=5),
    )

    assert findings(tree, "R17") == ()
