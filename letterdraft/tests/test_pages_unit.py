from letterdraft.letter.pages import BufferSurface, PageDocumentStore, PageQuota


def _committed(store: PageDocumentStore) -> list[list[str]]:
    commits: list[list[str]] = []
    store.set_commit_listener(commits.append)
    return commits


def test_loaded_pages_start_saved_with_display_fragments() -> None:
    store = PageDocumentStore.from_saved(["Hello", "World"], recipient_name="Mai", sender_name="An")
    assert [p.mode for p in store.pages] == ["saved", "saved"]
    assert store.display_content(0).startswith("Dear Mai,\n\nHello")
    assert store.display_content(1).endswith("World\n\nWith love, An")
    assert [p.saved_content for p in store.pages] == ["Hello", "World"]


def test_new_store_has_one_editing_page() -> None:
    store = PageDocumentStore()
    assert store.page_count == 1
    assert store.active_page.mode == "editing"
    assert store.active_page.saved_content == ""


def test_surface_edit_stores_raw_in_progress_content() -> None:
    surface = BufferSurface()
    store = PageDocumentStore(recipient_name="Mai", sender_name="An")
    store.attach_surface(surface)
    assert surface.text == "Dear Mai,\n\n\n\nWith love, An"

    store.on_surface_edit("Dear Mai,\n\nHello there\n\nWith love, An")
    assert store.active_page.in_progress_content == "Hello there"
    assert store.active_page.saved_content == ""


def test_save_reads_live_surface_and_commits_raw_content() -> None:
    surface = BufferSurface()
    store = PageDocumentStore(recipient_name="Mai", sender_name="An")
    commits = _committed(store)
    store.attach_surface(surface)

    store.on_surface_edit("Dear Mai,\n\nstale\n\nWith love, An")
    # Newest keystrokes have not reached the edit callback yet.
    surface.text = "Dear Mai,\n\nfresh text\n\nWith love, An"
    result = store.save()

    assert result.ok
    page = store.active_page
    assert page.mode == "saved"
    assert page.saved_content == "fresh text"
    assert page.in_progress_content == "fresh text"
    assert commits == [["fresh text"]]


def test_switch_page_keeps_uncommitted_edits() -> None:
    surface = BufferSurface()
    store = PageDocumentStore()
    store.attach_surface(surface)
    store.add_page()
    assert store.active_index == 1

    surface.text = "second page draft"
    assert store.switch_page(0).ok
    second = store.pages[1]
    assert second.mode == "editing"
    assert second.in_progress_content == "second page draft"
    assert second.saved_content == ""

    store.switch_page(1)
    assert surface.text == "second page draft"


def test_switch_page_out_of_range_is_reported() -> None:
    store = PageDocumentStore()
    result = store.switch_page(3)
    assert not result.ok
    assert result.reason == "index_out_of_range"
    assert store.active_index == 0


def test_edit_seeds_in_progress_from_saved() -> None:
    surface = BufferSurface()
    store = PageDocumentStore.from_saved(["Saved text"])
    store.attach_surface(surface)

    store.on_surface_edit("ignored while saved")
    assert store.active_page.in_progress_content == "Saved text"

    assert store.edit().ok
    assert store.active_page.mode == "editing"
    assert store.active_page.in_progress_content == "Saved text"
    assert store.edit().reason == "already_editing"


def test_out_of_order_save_commits_every_page() -> None:
    surface = BufferSurface()
    store = PageDocumentStore.from_saved(["one", "two", "three"])
    commits = _committed(store)
    store.attach_surface(surface)

    store.switch_page(2)
    store.edit()
    surface.text = "three v2"
    store.save()

    assert commits[-1] == ["one", "two", "three v2"]


def test_add_page_refused_by_quota() -> None:
    store = PageDocumentStore(quota=PageQuota(free_pages=2, extra_page_cost=5, balance=0))
    assert store.add_page().ok
    result = store.add_page()
    assert not result.ok
    assert result.reason == "quota_refused"
    assert store.page_count == 2


def test_add_page_beyond_free_pages_with_balance() -> None:
    store = PageDocumentStore(quota=PageQuota(free_pages=2, extra_page_cost=5, balance=5))
    store.add_page()
    assert store.add_page().ok
    assert store.page_count == 3
    assert store.active_index == 2
    assert store.active_page.mode == "editing"


def test_remove_page_reindexes_later_pages() -> None:
    store = PageDocumentStore.from_saved(["a", "b", "c", "d"])
    store.remove_page(1)
    pages = store.pages
    assert [p.index for p in pages] == [0, 1, 2]
    assert [p.saved_content for p in pages] == ["a", "c", "d"]


def test_remove_only_page_is_a_no_op() -> None:
    store = PageDocumentStore.from_saved(["only"])
    commits = _committed(store)
    store.remove_page(0)
    assert store.page_count == 1
    assert commits == []


def test_remove_active_page_activates_previous() -> None:
    store = PageDocumentStore.from_saved(["a", "b", "c"])
    store.switch_page(2)
    store.remove_page(2)
    assert store.active_index == 1

    store.switch_page(0)
    store.remove_page(0)
    assert store.active_index == 0
    assert store.active_page.saved_content == "b"


def test_remove_earlier_page_keeps_active_page() -> None:
    store = PageDocumentStore.from_saved(["a", "b", "c"])
    store.switch_page(2)
    store.remove_page(0)
    assert store.active_index == 1
    assert store.active_page.saved_content == "c"


def test_renaming_never_changes_stored_content() -> None:
    surface = BufferSurface()
    store = PageDocumentStore.from_saved(["Body"], recipient_name="Mai", sender_name="An")
    store.attach_surface(surface)

    store.set_names("Lan", "Binh")
    assert store.active_page.saved_content == "Body"
    assert surface.text == "Dear Lan,\n\nBody\n\nWith love, Binh"


def test_has_uncommitted_edits() -> None:
    store = PageDocumentStore.from_saved(["x"])
    assert not store.has_uncommitted_edits()
    store.edit()
    store.on_surface_edit("y")
    assert store.has_uncommitted_edits()


def test_typed_salutation_kept_when_names_are_empty() -> None:
    store = PageDocumentStore()
    store.on_surface_edit("Dear John,\nI miss you\n\nWith love, Me")
    assert store.active_page.in_progress_content == "Dear John,\nI miss you\n\nWith love, Me"
