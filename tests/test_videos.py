VIDEO = {
    'title': 'Intro to Tajweed',
    'description': 'First lesson',
    'category': 'basics',
    'videoUrl': 'https://www.youtube.com/watch?v=dQw4w9WgXcQ',
    'duration': '3:32',
}


def create(client, admin_headers, **overrides):
    return client.post('/api/admin/videos', headers=admin_headers, json=dict(VIDEO, **overrides))


def test_create_and_list(client, admin_headers):
    res = create(client, admin_headers, featured='true')
    assert res.status_code == 201
    video = res.get_json()
    assert video['featured'] is True
    assert video['source'] == {'kind': 'embedded', 'videoId': 'dQw4w9WgXcQ'}

    listed = client.get('/api/videos').get_json()
    assert [v['_id'] for v in listed] == [video['_id']]
    assert listed[0]['duration'] == '3:32'


def test_create_requires_fields(client, admin_headers):
    res = client.post('/api/admin/videos', headers=admin_headers, json={'title': 'x'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Missing required fields: description, category, videoUrl'


def test_public_detail_has_direct_source(client, admin_headers):
    video_id = create(client, admin_headers, videoUrl='https://cdn.example.com/v.mp4').get_json()['_id']

    res = client.get(f'/api/videos/{video_id}')
    assert res.status_code == 200
    assert res.get_json()['source'] == {'kind': 'direct', 'url': 'https://cdn.example.com/v.mp4'}
    assert client.get('/api/videos/missing').status_code == 404


def test_update(client, fake_db, admin_headers):
    video_id = create(client, admin_headers).get_json()['_id']

    res = client.patch(f'/api/admin/videos/{video_id}', headers=admin_headers,
                       json={'title': 'Renamed', '_id': 'ignored'})
    assert res.status_code == 200
    stored = fake_db.docs('videos')[video_id]
    assert stored['title'] == 'Renamed'
    assert '_id' not in stored

    assert client.patch('/api/admin/videos/missing', headers=admin_headers,
                        json={'title': 'x'}).status_code == 404


def test_delete_removes_owned_objects(client, fake_db, fake_s3, admin_headers):
    video_id = create(client, admin_headers, videoKey='videos/abc_intro.mp4',
                      thumbnailKey='thumbnails/abc_intro.jpg').get_json()['_id']

    res = client.delete(f'/api/admin/videos/{video_id}', headers=admin_headers)
    assert res.status_code == 200
    assert video_id not in fake_db.docs('videos')
    deleted = [c.kwargs['Key'] for c in fake_s3.delete_object.call_args_list]
    assert deleted == ['videos/abc_intro.mp4', 'thumbnails/abc_intro.jpg']

    assert client.delete(f'/api/admin/videos/{video_id}', headers=admin_headers).status_code == 404


def test_stream_and_preview(client, fake_db, admin_headers):
    video_id = create(client, admin_headers).get_json()['_id']

    res = client.get(f'/api/admin/videos/{video_id}/stream', headers=admin_headers)
    assert res.get_json() == {'url': VIDEO['videoUrl']}

    preview = client.get(f'/api/admin/videos/{video_id}/preview', headers=admin_headers).get_json()
    assert preview['title'] == VIDEO['title']
    assert preview['url'] == VIDEO['videoUrl']
    assert preview['featured'] is False

    fake_db.collection('videos').document('no-url').set({'title': 'Draft'})
    assert client.get('/api/admin/videos/no-url/stream', headers=admin_headers).status_code == 404
    assert client.get('/api/admin/videos/missing/preview', headers=admin_headers).status_code == 404
