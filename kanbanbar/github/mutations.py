# Single-selectフィールドを更新（Status, Priority）
UPDATE_PROJECT_FIELD = """
mutation UpdateProjectV2ItemFieldValue($projectId: ID!, $itemId: ID!, $fieldId: ID!, $optionId: String!) {
  updateProjectV2ItemFieldValue(input: {
    projectId: $projectId
    itemId: $itemId
    fieldId: $fieldId
    value: {
      singleSelectOptionId: $optionId
    }
  }) {
    projectV2Item {
      id
    }
  }
}
"""

# Draft issueを作成
ADD_DRAFT_ISSUE = """
mutation AddProjectV2DraftIssue($projectId: ID!, $title: String!, $body: String) {
  addProjectV2DraftIssue(input: {
    projectId: $projectId
    title: $title
    body: $body
  }) {
    projectItem {
      id
    }
  }
}
"""

# Draft issueのタイトル・本文を更新
UPDATE_DRAFT_ISSUE = """
mutation UpdateProjectV2DraftIssue($draftIssueId: ID!, $title: String!, $body: String) {
  updateProjectV2DraftIssue(input: {
    draftIssueId: $draftIssueId
    title: $title
    body: $body
  }) {
    draftIssue {
      id
      title
    }
  }
}
"""
