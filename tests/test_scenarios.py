"""End-to-end flows across two sessions sharing one store."""

import pytest

from renotefy.errors import PermissionDeniedError
from renotefy.identity import Principal

U1 = Principal(id="u1", email="u1@x.com", display_name="User One")
U2 = Principal(id="u2", email="u2@x.com", display_name="User Two")


def test_viewer_upgraded_to_editor_can_update(run_with_store, open_repo):
    async def scenario(store):
        owner = await open_repo(store, U1)
        recipe = await owner.create_note("Recipe", "flour")
        await owner.share_note(recipe.id, "u2@x.com", "viewer")

        guest = await open_repo(store, U2)
        with pytest.raises(PermissionDeniedError):
            await guest.update_note(recipe.id, {"content": "flour, sugar"})

        shared = await owner.share_note(recipe.id, "u2@x.com", "editor")
        await guest.refresh()
        edited = await guest.update_note(recipe.id, {"content": "flour, sugar"})
        return recipe, shared, edited, guest

    recipe, shared, edited, guest = run_with_store(scenario)

    assert shared.shared_with == ["u2@x.com"]
    assert edited.content == "flour, sugar"
    assert edited.owner_id == "u1"
    assert edited.updated_at > shared.updated_at > recipe.updated_at
    assert guest.shared_with_me[0].content == "flour, sugar"


def test_public_note_is_readable_but_not_editable_anonymously(run_with_store, open_repo):
    async def scenario(store):
        owner = await open_repo(store, U1)
        doc = await owner.create_note("Public Doc")
        await owner.toggle_public_status(doc.id, True)

        visitor = await open_repo(store)
        fetched = await visitor.get_note_by_id(doc.id)
        with pytest.raises(PermissionDeniedError):
            await visitor.update_note(doc.id, {"title": "Hijacked"})
        return doc, fetched, visitor

    doc, fetched, visitor = run_with_store(scenario)

    assert fetched.id == doc.id
    assert fetched.title == "Public Doc"
    assert visitor.current_note.title == "Public Doc"
    assert [n.id for n in visitor.public] == [doc.id]


def test_allowed_copy_creates_private_note_for_copier(run_with_store, open_repo):
    async def scenario(store):
        owner = await open_repo(store, U1)
        template = await owner.create_note("Template Note", "## Agenda")
        await owner.share_note(template.id, "someone@x.com")
        await owner.toggle_allow_copy(template.id, True)

        copier = await open_repo(store, U2)
        copy = await copier.copy_note_as_template(template.id)
        source = await copier.get_note_by_id(template.id)
        return template, copy, source, copier

    template, copy, source, copier = run_with_store(scenario)

    assert copy.id != template.id
    assert copy.owner_id == "u2"
    assert copy.owner_email == "u2@x.com"
    assert copy.copied_from == template.id
    assert copy.shared_with == []
    assert copy.content == "## Agenda"
    assert not copy.is_public and not copy.allow_copy
    assert [n.id for n in copier.owned] == [copy.id]
    assert source.owner_id == "u1"
    assert source.shared_with == ["someone@x.com"]
