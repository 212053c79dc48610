from idiomlint.rules import NodeContext, base_object, names_variable
from idiomlint.syntax import NodeKind, node_from_dict


def node(kind, loc, children=None, **attrs):
    data = {"kind": kind, "loc": loc}
    if attrs:
        data["attrs"] = attrs
    if children:
        data["children"] = children
    return data


def parent_map(root):
    parents = {}
    for current in root.walk():
        for role, child in current.iter_children():
            parents[child] = (current, role)
    return parents


def build():
    parameter = node("ParameterDecl", "2:10", name="count", type="int")
    first = node("VariableDecl", "3:5", name="total", type="int")
    second = node("VariableDecl", "4:5", name="limit", type="int")
    body = node("CompoundStatement", "2:20", {"statements": [first, second]})
    function = node("FunctionDecl", "2:1", {"parameters": [parameter], "body": body}, name="sum")
    field = node("FieldDecl", "8:5", name="size", type="int")
    record = node("RecordDecl", "7:1", {"members": [field]}, name="Buffer")
    global_var = node("VariableDecl", "10:1", name="counter", type="int")
    root = node_from_dict(
        {"kind": "TranslationUnit", "loc": "main.cpp:1:1", "children": {"decls": [function, record, global_var]}}
    )
    return root, parent_map(root)


def test_siblings_share_parent_and_role():
    root, parents = build()
    function, record, global_var = root.children_of("decls")
    body = function.child("body")
    first, second = body.children_of("statements")

    assert NodeContext(first, parents).siblings() == (second,)
    assert NodeContext(record, parents).siblings() == (function, global_var)
    assert NodeContext(function.child("parameters"), parents).siblings() == ()
    assert NodeContext(root, parents).siblings() == ()


def test_parent_role_and_nearest():
    root, parents = build()
    function = root.children_of("decls")[0]
    first = function.child("body").children_of("statements")[0]
    context = NodeContext(first, parents)

    assert context.parent is function.child("body")
    assert context.role == "statements"
    assert context.nearest(NodeKind.FUNCTION_DECL) is function
    assert context.nearest(NodeKind.RECORD_DECL) is None
    assert NodeContext(root, parents).parent is None


def test_scope_classification():
    root, parents = build()
    function, record, global_var = root.children_of("decls")

    assert NodeContext(function.child("parameters"), parents).scope() == "parameter"
    assert NodeContext(function.child("body").children_of("statements")[0], parents).scope() == "local"
    assert NodeContext(record.child("members"), parents).scope() == "member"
    assert NodeContext(global_var, parents).scope() == "namespace"


def test_member_and_subscript_reach_the_accessed_variable():
    point = node("DeclRefExpr", "5:9", name="point")
    position = node("MemberExpr", "5:9", {"base": point}, member="pos")
    nested = node_from_dict(node("MemberExpr", "5:9", {"base": node("ParenExpr", "5:9", {"inner": position})}, member="x"))
    element = node_from_dict(
        node("ContainerIndexExpr", "6:9", {"container": point, "index": node("Literal", "6:15", value=0)})
    )

    assert base_object(nested).name == "point"
    assert names_variable(nested, "point")
    assert names_variable(element, "point")
    assert not names_variable(element, "pos")
