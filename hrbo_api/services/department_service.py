# hrbo_api/services/department_service.py
"""
Department tree maintenance.

Departments are kept as an arena {id: parent_department_id}; any write that
sets a parent walks the chain upward from the proposed parent and refuses the
write if it reaches the department itself (or loops without reaching a root).
"""
from __future__ import annotations

from typing import Dict, List, Optional

from hrbo_api.common.errors import InvalidStateError, NotFoundError, ValidationError
from hrbo_api.common.parsing import clean_text
from hrbo_api.extensions import db
from hrbo_api.models.employee import Employee
from hrbo_api.models.master import Branch, Department


def load_arena() -> Dict[int, Optional[int]]:
    rows = db.session.query(Department.id, Department.parent_department_id).all()
    return {dept_id: parent_id for dept_id, parent_id in rows}


def assert_acyclic(dept_id: Optional[int], parent_id: Optional[int], arena: Dict[int, Optional[int]] | None = None):
    """Raise ValidationError if making `parent_id` the parent of `dept_id` creates a cycle."""
    if parent_id is None:
        return
    if dept_id is not None and parent_id == dept_id:
        raise ValidationError("Department cannot be its own parent.", payload={"parent_department_id": parent_id})
    arena = load_arena() if arena is None else arena
    if parent_id not in arena:
        raise NotFoundError("parent_department_id not found", payload={"parent_department_id": parent_id})
    seen = set()
    cur = parent_id
    while cur is not None:
        if cur == dept_id:
            raise ValidationError(
                "Department parent chain would form a cycle.",
                payload={"department_id": dept_id, "parent_department_id": parent_id},
            )
        if cur in seen:
            raise ValidationError("Existing department hierarchy already contains a cycle.", payload={"at": cur})
        seen.add(cur)
        cur = arena.get(cur)


def ancestors(dept_id: int, arena: Dict[int, Optional[int]] | None = None) -> List[int]:
    """Parent chain from the immediate parent up to the root."""
    arena = load_arena() if arena is None else arena
    out, cur = [], arena.get(dept_id)
    while cur is not None and cur not in out:
        out.append(cur)
        cur = arena.get(cur)
    return out


def build_tree(departments: List[Department]) -> List[dict]:
    """Nest departments under their parents; roots are those without a (known) parent."""
    nodes = {
        d.id: {
            "id": d.id,
            "name": d.name,
            "branch_id": d.branch_id,
            "head_employee_id": d.head_employee_id,
            "children": [],
        }
        for d in departments
    }
    roots = []
    for d in sorted(departments, key=lambda x: x.name.lower()):
        parent = nodes.get(d.parent_department_id)
        (parent["children"] if parent else roots).append(nodes[d.id])
    return roots


def get_department(dept_id: int) -> Department:
    d = db.session.get(Department, dept_id)
    if not d:
        raise NotFoundError("Department not found", payload={"id": dept_id})
    return d


def _check_refs(branch_id, head_employee_id):
    if branch_id is None:
        raise ValidationError("branch_id is required")
    if not db.session.get(Branch, branch_id):
        raise NotFoundError("branch_id not found", payload={"branch_id": branch_id})
    if head_employee_id is not None and not db.session.get(Employee, head_employee_id):
        raise NotFoundError("head_employee_id not found", payload={"head_employee_id": head_employee_id})


def create(*, name=None, branch_id=None, description=None, parent_department_id=None, head_employee_id=None) -> Department:
    name = clean_text(name)
    if not name:
        raise ValidationError("name is required")
    if len(name) > 255:
        raise ValidationError("name is at most 255 characters")
    _check_refs(branch_id, head_employee_id)
    assert_acyclic(None, parent_department_id)

    d = Department(
        name=name,
        description=clean_text(description),
        branch_id=branch_id,
        parent_department_id=parent_department_id,
        head_employee_id=head_employee_id,
    )
    db.session.add(d)
    db.session.commit()
    return d


def update(d: Department, **changes) -> Department:
    name = clean_text(changes.get("name", d.name))
    if not name:
        raise ValidationError("name cannot be empty")
    branch_id = changes.get("branch_id", d.branch_id)
    head_employee_id = changes.get("head_employee_id", d.head_employee_id)
    parent_id = changes.get("parent_department_id", d.parent_department_id)

    _check_refs(branch_id, head_employee_id)
    assert_acyclic(d.id, parent_id)

    d.name = name
    if "description" in changes:
        d.description = clean_text(changes["description"])
    d.branch_id = branch_id
    d.head_employee_id = head_employee_id
    d.parent_department_id = parent_id
    db.session.commit()
    return d


def delete(d: Department) -> None:
    if Employee.query.filter_by(department_id=d.id).count():
        raise InvalidStateError("Cannot delete department that has employees.")
    if Department.query.filter_by(parent_department_id=d.id).count():
        raise InvalidStateError("Cannot delete department that has child departments.")
    db.session.delete(d)
    db.session.commit()
