"""
Shared fixtures for apiflow tests.
"""

from pathlib import Path

import pytest

from apiflow.playwright import Step


SAMPLE_SCRIPT = '''import { test, expect } from '@playwright/test';

const baseUrl = "https://api.myapp.com";

test("Generated API test", async ({ request }) => {
  const authToken = await test.step("POST and save as authToken", async () => {
    const response = await request.post(`${baseUrl}/api/auth/login`, {
      data: {
        "username": "testuser",
        "password": "password123"
      },
      headers: {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": "Playwright-API-Test",
        "X-Client-Version": "1.0.0"
      }
    });
    await expect(response).toBeOK();
    const data = await response.json();
    return data;
  });

  const userProfile = await test.step("GET and save as userProfile", async () => {
    const response = await request.get(`${baseUrl}/api/user/profile`, {
      headers: {
        "Authorization": `Bearer ${authToken.token}`,
        "Accept": "application/json",
        "Cache-Control": "no-cache"
      }
    });
    await expect(response).toBeOK();
    const data = await response.json();
    return data;
  });

  await test.step("GET request", async () => {
    const response = await request.get(`${baseUrl}/api/orders?userId=${userProfile.id}`, {
      headers: {
        "Authorization": `Bearer ${authToken.token}`,
        "Accept": "application/json",
        "X-Request-ID": `orders-fetch-${userProfile.id}`
      }
    });
    await expect(response).toBeOK();
    const data = await response.json();
    expect(data.length).toBeGreaterThan(0);
  });
});'''


@pytest.fixture
def sample_script():
    """Three-step login / profile / orders script."""
    return SAMPLE_SCRIPT


@pytest.fixture
def auth_steps():
    """Token request followed by a call that uses the token."""
    return [
        Step(
            method='POST',
            url='/oauth/token',
            expect_status_ok=True,
            save_response_as='authToken',
            request_body='{\n  "grant_type": "client_credentials"\n}',
            headers={'Content-Type': 'application/json'}
        ),
        Step(
            method='GET',
            url='users',
            expect_status_ok=True,
            expect_array_not_empty=True,
            headers={'Authorization': 'Bearer ${authToken.access_token}'}
        ),
    ]


@pytest.fixture
def script_file(tmp_path, sample_script) -> Path:
    """Sample script written to disk."""
    path = tmp_path / 'api.spec.ts'
    path.write_text(sample_script, encoding='utf-8')
    return path
