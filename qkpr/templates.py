from __future__ import annotations

from .config import QkprConfig

COMMIT_MESSAGE_PROMPT_ZH = """遵循 Angular Commit Message 规范，生成git commit message,

如果用户没有指示，默认为中文
尽量使用plaintext的语法，不要使用md的语法
生成的内容中不能包含emoji
格式：
<type>(<scope>): <subject>

- 详细描述1
- 详细描述2
- 详细描述3

其中 subject 必填，详细描述为可选的补充说明

type: feat, fix, docs, style, refactor, perf, test, chore, revert, build
scope: 可选，表示影响范围（如模块名）
subject: 简明扼要的提交说明
详细描述: 使用列表形式简要说明主要改动点，每个列表项应简短清晰，数量限制在3-5个以内

重要规则：
1. 不要生成 body 和 footer 部分
2. 只生成 subject 和列表形式的详细描述
3. 列表项要简洁，每项不超过一行
4. 不要添加额外的解释或说明文字

示例：
feat(auth): 添加微信登录功能

- 支持微信扫码登录
- 支持微信账号绑定
- 添加微信用户信息同步

除了commit msg，其他不需要返回任何内容。

请你根据 git diff 生成 commit message。"""

COMMIT_MESSAGE_PROMPT_EN = """Write a git commit message for the diff below following the Angular commit convention.

Use plain text, no markdown and no emoji.
Format:
<type>(<scope>): <subject>

- detail 1
- detail 2
- detail 3

type: feat, fix, docs, style, refactor, perf, test, chore, revert, build
scope: optional, the affected area (e.g. a module name)
subject: a short summary of the change, required
details: optional, 3 to 5 short bullet points, one line each

Rules:
1. Do not write a body or footer section
2. Only the subject line and the bullet list
3. No explanations around the message

Example:
feat(auth): add WeChat login

- support QR code login
- support binding WeChat accounts
- sync WeChat profile data

Return the commit message only."""

BRANCH_NAME_PROMPT_ZH = """请根据 git diff 生成分支名，遵循以下规范：

feat/   新功能开发 feat/user-authentication
fix/    Bug修复 fix/login-error
hotfix/ 紧急线上问题修复 hotfix/payment-failure
refactor/   代码重构 refactor/user-service
docs/   文档更新 docs/api-reference
perf/   性能优化 perf/image-loading
test/   测试相关 test/user-profile
chore/  构建/配置变更 chore/webpack-update

输出格式：直接输出分支名，无需其他内容"""

BRANCH_NAME_PROMPT_EN = """Suggest a git branch name for the diff below using one of these prefixes:

feat/      new feature          feat/user-authentication
fix/       bug fix              fix/login-error
hotfix/    urgent production fix hotfix/payment-failure
refactor/  refactoring          refactor/user-service
docs/      documentation        docs/api-reference
perf/      performance          perf/image-loading
test/      tests                test/user-profile
chore/     build or config      chore/webpack-update

Output the branch name only."""

_COMMIT = {"zh": COMMIT_MESSAGE_PROMPT_ZH, "en": COMMIT_MESSAGE_PROMPT_EN}
_BRANCH = {"zh": BRANCH_NAME_PROMPT_ZH, "en": BRANCH_NAME_PROMPT_EN}


def commit_message_prompt(cfg: QkprConfig) -> str:
    return cfg.custom_commit_message_prompt or _COMMIT[cfg.language()]


def branch_name_prompt(cfg: QkprConfig) -> str:
    return cfg.custom_branch_name_prompt or _BRANCH[cfg.language()]
