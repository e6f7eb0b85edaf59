from bson import ObjectId

from conftest import as_user


def upload_files(video=b"\x00\x00\x00\x18ftypmp42", thumb=b"\x89PNG\r\n"):
    return {
        "videoFile": ("clip.mp4", video, "video/mp4"),
        "thumbnail": ("thumb.png", thumb, "image/png"),
    }


# -------------------- listing --------------------

def test_list_videos_defaults_to_newest_first_and_published_only(client, make_user, make_video):
    owner = make_user()
    old = make_video(owner, title="Old", age_minutes=30)
    new = make_video(owner, title="New", age_minutes=1)
    make_video(owner, title="Hidden", is_published=False)

    res = client.get("/videos")

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["statusCode"] == 200
    ids = [d["id"] for d in body["data"]["docs"]]
    assert ids == [str(new), str(old)]
    assert body["data"]["totalDocs"] == 2


def test_list_videos_joins_owner_public_profile(client, make_user, make_video):
    owner = make_user("alice")
    make_video(owner)

    doc = client.get("/videos").json()["data"]["docs"][0]

    assert doc["ownerDetails"] == {
        "id": str(owner),
        "username": "alice",
        "avatar": "/static/avatars/alice.png",
    }
    assert doc["owner"] == str(owner)


def test_list_videos_sorts_by_given_field(client, make_user, make_video):
    owner = make_user()
    make_video(owner, title="b", views=5)
    make_video(owner, title="a", views=50)
    make_video(owner, title="c", views=1)

    asc = client.get("/videos", params={"sortBy": "views", "sortType": "asc"}).json()["data"]["docs"]
    desc = client.get("/videos", params={"sortBy": "views", "sortType": "desc"}).json()["data"]["docs"]

    assert [d["views"] for d in asc] == [1, 5, 50]
    assert [d["views"] for d in desc] == [50, 5, 1]


def test_list_videos_ignores_sort_field_without_direction(client, make_user, make_video):
    owner = make_user()
    first = make_video(owner, title="a", age_minutes=10)
    second = make_video(owner, title="z", age_minutes=5)

    docs = client.get("/videos", params={"sortBy": "title"}).json()["data"]["docs"]

    assert [d["id"] for d in docs] == [str(second), str(first)]


def test_list_videos_search_matches_title_or_description(client, make_user, make_video):
    owner = make_user()
    make_video(owner, title="Cooking pasta", description="dinner")
    make_video(owner, title="Morning run", description="Pasta fuel before a race")
    make_video(owner, title="Guitar lesson", description="chords")

    docs = client.get("/videos", params={"query": "pasta"}).json()["data"]["docs"]

    assert sorted(d["title"] for d in docs) == ["Cooking pasta", "Morning run"]


def test_list_videos_filters_by_owner(client, make_user, make_video):
    alice, bob = make_user(), make_user()
    make_video(alice)
    bobs = make_video(bob)

    docs = client.get("/videos", params={"userId": str(bob)}).json()["data"]["docs"]

    assert [d["id"] for d in docs] == [str(bobs)]


def test_list_videos_rejects_malformed_user_id(client):
    res = client.get("/videos", params={"userId": "not-an-id"})

    assert res.status_code == 400
    assert res.json() == {
        "statusCode": 400,
        "data": None,
        "message": "Invalid userId",
        "success": False,
        "errors": [],
    }


def test_list_videos_paginates(client, make_user, make_video):
    owner = make_user()
    for _ in range(5):
        make_video(owner)

    page = client.get("/videos", params={"page": 2, "limit": 2}).json()["data"]

    assert len(page["docs"]) == 2
    assert page["totalDocs"] == 5
    assert page["totalPages"] == 3
    assert page["page"] == 2
    assert page["pagingCounter"] == 3
    assert page["hasPrevPage"] is True
    assert page["hasNextPage"] is True
    assert page["prevPage"] == 1
    assert page["nextPage"] == 3


def test_list_videos_rejects_bad_page_parameter(client):
    res = client.get("/videos", params={"page": 0})

    assert res.status_code == 400
    assert res.json()["success"] is False


# -------------------- create --------------------

def test_publish_video_stores_uploaded_media(client, db, make_user, storage):
    owner = make_user()

    res = client.post(
        "/videos",
        data={"title": "My trip", "description": "Holiday footage"},
        files=upload_files(),
        headers=as_user(owner),
    )

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["title"] == "My trip"
    assert data["isPublished"] is True
    assert data["views"] == 0
    assert data["duration"] == 12.5
    assert data["owner"] == str(owner)
    assert data["videoFile"].startswith("/static/videos/")
    assert data["thumbnail"].startswith("/static/thumbnails/")
    assert db["video"].count_documents({}) == 1


def test_publish_video_requires_title_and_description(client, db, make_user):
    owner = make_user()

    res = client.post(
        "/videos",
        data={"title": "   ", "description": "Holiday footage"},
        files=upload_files(),
        headers=as_user(owner),
    )

    assert res.status_code == 400
    assert res.json()["message"] == "All fields are required"
    assert db["video"].count_documents({}) == 0


def test_publish_video_requires_thumbnail(client, db, make_user):
    owner = make_user()

    res = client.post(
        "/videos",
        data={"title": "My trip", "description": "Holiday footage"},
        files={"videoFile": ("clip.mp4", b"data", "video/mp4")},
        headers=as_user(owner),
    )

    assert res.status_code == 400
    assert res.json()["message"] == "Thumbnail file is required"


def test_publish_video_fails_when_upload_fails(client, db, make_user):
    owner = make_user()

    res = client.post(
        "/videos",
        data={"title": "My trip", "description": "Holiday footage"},
        files=upload_files(video=b""),
        headers=as_user(owner),
    )

    assert res.status_code == 500
    assert res.json()["message"] == "Video file upload failed"
    assert db["video"].count_documents({}) == 0


def test_publish_video_requires_caller_identity(client):
    res = client.post("/videos", data={"title": "t", "description": "d"}, files=upload_files())

    assert res.status_code == 401


# -------------------- read --------------------

def test_get_video_counts_a_view(client, make_user, make_video):
    video = make_video(make_user(), views=3)

    res = client.get(f"/videos/{video}")

    assert res.status_code == 200
    assert res.json()["data"]["views"] == 4


def test_get_video_not_found(client):
    res = client.get(f"/videos/{ObjectId()}")

    assert res.status_code == 404
    assert res.json()["message"] == "Video not found"


def test_get_video_malformed_id(client):
    assert client.get("/videos/123").status_code == 400


# -------------------- update / delete / publish --------------------

def test_update_video_by_owner(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner, title="Before")

    res = client.patch(f"/videos/{video}", data={"title": "After"}, headers=as_user(owner))

    assert res.status_code == 200
    assert res.json()["data"]["title"] == "After"
    assert db["video"].find_one({"_id": video})["title"] == "After"


def test_update_video_replaces_thumbnail(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner)

    res = client.patch(
        f"/videos/{video}",
        files={"thumbnail": ("new.png", b"\x89PNG", "image/png")},
        headers=as_user(owner),
    )

    assert res.status_code == 200
    assert db["video"].find_one({"_id": video})["thumbnail"] == res.json()["data"]["thumbnail"]
    assert res.json()["data"]["thumbnail"].startswith("/static/thumbnails/")


def test_update_video_failed_thumbnail_keeps_other_fields(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner, title="Before")

    res = client.patch(
        f"/videos/{video}",
        data={"title": "After"},
        files={"thumbnail": ("new.png", b"", "image/png")},
        headers=as_user(owner),
    )

    assert res.status_code == 500
    assert res.json()["message"] == "Thumbnail upload failed"
    assert db["video"].find_one({"_id": video})["title"] == "Before"


def test_update_video_requires_a_field(client, make_user, make_video):
    owner = make_user()
    video = make_video(owner)

    res = client.patch(f"/videos/{video}", data={}, headers=as_user(owner))

    assert res.status_code == 400
    assert res.json()["message"] == "At least one field to update is required"


def test_update_video_by_non_owner_is_forbidden(client, db, make_user, make_video):
    owner, intruder = make_user(), make_user()
    video = make_video(owner, title="Before")

    res = client.patch(f"/videos/{video}", data={"title": "Hacked"}, headers=as_user(intruder))

    assert res.status_code == 403
    assert db["video"].find_one({"_id": video})["title"] == "Before"


def test_delete_video_by_non_owner_is_forbidden(client, db, make_user, make_video):
    owner, intruder = make_user(), make_user()
    video = make_video(owner)

    res = client.delete(f"/videos/{video}", headers=as_user(intruder))

    assert res.status_code == 403
    assert db["video"].count_documents({"_id": video}) == 1


def test_delete_video_removes_likes_and_playlist_entries(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner)
    keep = make_video(owner)
    db["like"].insert_one({"video": video, "likedBy": owner})
    playlist = db["playlist"].insert_one({"name": "p", "owner": owner, "videos": [video, keep]}).inserted_id

    res = client.delete(f"/videos/{video}", headers=as_user(owner))

    assert res.status_code == 200
    assert res.json()["data"] == {}
    assert db["video"].count_documents({"_id": video}) == 0
    assert db["like"].count_documents({}) == 0
    assert db["playlist"].find_one({"_id": playlist})["videos"] == [keep]


def test_delete_video_malformed_id(client, db, make_user, make_video):
    owner = make_user()
    make_video(owner)

    res = client.delete("/videos/xyz", headers=as_user(owner))

    assert res.status_code == 400
    assert db["video"].count_documents({}) == 1


def test_toggle_publish_twice(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner)

    first = client.patch(f"/videos/toggle/publish/{video}", headers=as_user(owner))
    assert first.json()["data"]["isPublished"] is False
    assert db["video"].find_one({"_id": video})["isPublished"] is False

    second = client.patch(f"/videos/toggle/publish/{video}", headers=as_user(owner))
    assert second.json()["data"]["isPublished"] is True
    assert db["video"].find_one({"_id": video})["isPublished"] is True


def test_toggle_publish_by_non_owner_is_forbidden(client, db, make_user, make_video):
    owner, intruder = make_user(), make_user()
    video = make_video(owner)

    res = client.patch(f"/videos/toggle/publish/{video}", headers=as_user(intruder))

    assert res.status_code == 403
    assert db["video"].find_one({"_id": video})["isPublished"] is True


def test_list_videos_search_is_literal(client, make_user, make_video):
    owner = make_user()
    make_video(owner, title="C++ basics", description="pointers")
    make_video(owner, title="Cooking", description="dinner")
    make_video(owner, title="Math (part 1)", description="sums")

    plus = client.get("/videos", params={"query": "c++"})
    paren = client.get("/videos", params={"query": "("})
    dot = client.get("/videos", params={"query": "."})

    assert plus.status_code == 200
    assert [d["title"] for d in plus.json()["data"]["docs"]] == ["C++ basics"]
    assert paren.status_code == 200
    assert [d["title"] for d in paren.json()["data"]["docs"]] == ["Math (part 1)"]
    assert dot.json()["data"]["docs"] == []


def test_update_video_rejects_blank_title(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner, title="Before")

    res = client.patch(f"/videos/{video}", data={"title": "   "}, headers=as_user(owner))

    assert res.status_code == 400
    assert db["video"].find_one({"_id": video})["title"] == "Before"


def test_update_video_strips_title(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner, title="Before")

    client.patch(f"/videos/{video}", data={"title": "  After  ", "description": " "}, headers=as_user(owner))

    stored = db["video"].find_one({"_id": video})
    assert stored["title"] == "After"
    assert stored["description"] == "A video"


def test_update_and_publish_toggle_malformed_id(client, db, make_user, make_video):
    owner = make_user()
    video = make_video(owner, title="Before")

    assert client.patch("/videos/nope", data={"title": "After"}, headers=as_user(owner)).status_code == 400
    assert client.patch("/videos/toggle/publish/nope", headers=as_user(owner)).status_code == 400

    stored = db["video"].find_one({"_id": video})
    assert stored["title"] == "Before"
    assert stored["isPublished"] is True
