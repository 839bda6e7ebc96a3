# 全プロジェクト取得（20プロジェクト × 50アイテム × 10フィールド値 × 5担当者/ラベル）
GET_PROJECTS = """
query GetProjects {
  viewer {
    projectsV2(first: 20) {
      nodes {
        id
        number
        title
        url
        fields(first: 20) {
          nodes {
            ... on ProjectV2SingleSelectField {
              id
              name
              options {
                id
                name
                color
              }
            }
          }
        }
        items(first: 50) {
          nodes {
            id
            fieldValues(first: 10) {
              nodes {
                ... on ProjectV2ItemFieldSingleSelectValue {
                  name
                  optionId
                  field {
                    ... on ProjectV2SingleSelectField {
                      id
                      name
                    }
                  }
                }
              }
            }
            content {
              ... on Issue {
                title
                number
                state
                url
                createdAt
                updatedAt
                assignees(first: 5) {
                  nodes {
                    id
                    login
                    avatarUrl
                  }
                }
                labels(first: 5) {
                  nodes {
                    id
                    name
                    color
                  }
                }
              }
              ... on PullRequest {
                title
                number
                state
                url
                createdAt
                updatedAt
                assignees(first: 5) {
                  nodes {
                    id
                    login
                    avatarUrl
                  }
                }
              }
              ... on DraftIssue {
                title
                body
                createdAt
                updatedAt
              }
            }
          }
        }
      }
    }
  }
}
"""

# フルクエリ失敗時のフォールバック（プロジェクト基本情報のみ）
GET_BASIC_PROJECTS = """
query GetBasicProjects {
  viewer {
    projectsV2(first: 5) {
      nodes {
        id
        number
        title
        url
      }
    }
  }
}
"""
