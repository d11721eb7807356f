def test_health(client) -> None:
    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'OK', 'message': 'Synapse API is running'}


def test_unknown_route_returns_json_404(client) -> None:
    response = client.get('/api/does-not-exist')

    assert response.status_code == 404
    assert response.json() == {'error': 'Route not found'}


def test_stats_counts_users_resources_and_downloads(client, register_user, upload_resource) -> None:
    token = register_user()['token']
    register_user(email='grace@example.edu', name='Grace')
    first = upload_resource(token, title='Kinematics', subject='Physics').json()['resource']['id']
    upload_resource(token, title='Optics', subject='Physics')
    upload_resource(token, title='Sets', subject='Math')
    client.get(f'/api/resources/{first}/download')
    client.get(f'/api/resources/{first}/download')

    response = client.get('/api/stats')

    assert response.status_code == 200
    stats = response.json()['stats']
    assert stats['totalResources'] == 3
    assert stats['totalUsers'] == 2
    assert stats['totalDownloads'] == 2
    assert stats['topSubjects'] == [{'subject': 'Physics', 'count': 2}, {'subject': 'Math', 'count': 1}]
    assert [upload['title'] for upload in stats['recentUploads']] == ['Sets', 'Optics', 'Kinematics']
    assert stats['recentUploads'][0]['uploadedBy'] == 'Ada'


def test_filters_lists_distinct_values(client, register_user, upload_resource) -> None:
    token = register_user()['token']
    upload_resource(token, year='2021', subject='Physics', college='MIT', type='Notes')
    upload_resource(token, year='2024', subject='Math', college='Yale', type='Solutions')
    upload_resource(token, year='2023', subject='Physics', college='MIT', type='Notes')

    response = client.get('/api/filters')

    assert response.status_code == 200
    assert response.json() == {
        'subjects': ['Math', 'Physics'],
        'years': ['2024', '2023', '2021'],
        'colleges': ['MIT', 'Yale'],
        'types': ['Notes', 'Solutions'],
    }
